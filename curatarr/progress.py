from dataclasses import dataclass
from typing import Optional
from datetime import datetime


@dataclass
class SwitchProgress:
    """Tracks the media server switch currently in flight."""
    is_running: bool = False
    current_server_type: Optional[str] = None
    target_server_type: Optional[str] = None
    migrate_rules: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    last_status: Optional[str] = None
    last_message: str = ""

    def start(self, current: Optional[str], target: str, migrate_rules: bool):
        self.is_running = True
        self.current_server_type = current
        self.target_server_type = target
        self.migrate_rules = migrate_rules
        self.started_at = datetime.now()
        self.finished_at = None

    def finish(self, status: str, message: str):
        self.is_running = False
        self.finished_at = datetime.now()
        self.last_status = status
        self.last_message = message

    def to_dict(self) -> dict:
        return {
            "is_running": self.is_running,
            "current_server_type": self.current_server_type,
            "target_server_type": self.target_server_type,
            "migrate_rules": self.migrate_rules,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "last_status": self.last_status,
            "last_message": self.last_message
        }


# Global progress instance
switch_progress = SwitchProgress()
