"""Flight supply orchestration and traveler preference scoring."""
