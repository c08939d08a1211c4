"""
git-survey - Measure the shape and size of a git repository

Walks every object reachable from a chosen set of refs and reports counts,
sizes, histograms and the largest commits, trees and blobs. The numbers
describe the repository data itself and help explain why a repository is
slow to clone, fetch or repack.
"""

__version__ = "0.1.0"

from .config import SurveyConfig, load_config
from .models import SurveyStats
from .refs import RefsWanted
from .survey import run_survey, survey_repository

__all__ = [
    "survey_repository",  # Main entry point
    "run_survey",  # Advanced usage (explicit collaborators)
    "SurveyConfig",
    "SurveyStats",
    "RefsWanted",
    "load_config",
]
