"""Base formatter interface for survey output rendering."""

from abc import ABC, abstractmethod

from ..config import SurveyConfig
from ..models import SurveyStats


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, stats: SurveyStats, config: SurveyConfig) -> str:
        """Return formatted string representation of the stats."""
