"""newsforge: article generation pipeline orchestration engine."""
