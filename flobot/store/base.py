"""
Store Interface

The instance never looks inside the store; handlers do. Two kinds of records
are persisted: triggers and edits.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class Trigger:
    """
    An automatic reaction to a word or phrase.

    Exactly one of emoji or text is set.
    """
    team_id: str
    triggered_by: str
    emoji: Optional[str] = None
    text: Optional[str] = None
    id: Optional[int] = None

    @property
    def is_text(self) -> bool:
        return self.text is not None


class TriggerStore(ABC):
    """Per-team trigger persistence"""

    @abstractmethod
    def list_triggers(self, team_id: str) -> List[Trigger]:
        """All triggers of a team, sorted by trigger"""
        pass

    @abstractmethod
    def search_triggers(self, team_id: str) -> List[Trigger]:
        """All triggers of a team, emoji triggers first"""
        pass

    @abstractmethod
    def add_text_trigger(self, team_id: str, trigger: str, text: str) -> None:
        pass

    @abstractmethod
    def add_emoji_trigger(self, team_id: str, trigger: str, emoji: str) -> None:
        pass

    @abstractmethod
    def del_trigger(self, team_id: str, trigger: str) -> None:
        pass


@dataclass
class Edit:
    """
    A message rewrite: a post whose whole message is edit gets replaced.

    Team edits have team_id set, personal ones user_id.
    """
    edit: str
    replace_with_text: Optional[str] = None
    replace_with_file: Optional[str] = None
    team_id: Optional[str] = None
    user_id: Optional[str] = None
    id: Optional[int] = None


class EditStore(ABC):
    """Team and user edit persistence"""

    @abstractmethod
    def list_edits(self, team_id: str) -> List[Edit]:
        """All edits of a team, sorted by edit"""
        pass

    @abstractmethod
    def find_edit(self, user_id: str, team_id: str, edit: str) -> Optional[Edit]:
        """
        The edit matching edit (surrounding whitespace ignored).

        The user's own edit wins over the team's.
        """
        pass

    @abstractmethod
    def add_team_edit(self, team_id: str, edit: str, replace: str) -> None:
        pass

    @abstractmethod
    def del_team_edit(self, team_id: str, edit: str) -> None:
        pass
