"""Goal tracker API: personal goals with milestones, notes and progress stats."""

__version__ = "0.1.0"
