"""Business logic for goals: progress rules, filtering, statistics and the goal service."""
