"""JSON formatter for git-survey."""

import json
from typing import Any, Dict

from ..config import SurveyConfig
from ..models import RefStats, SurveyStats
from ..refs import RefsWanted
from .base import BaseFormatter


def refs_to_dict(refs: RefStats, wanted: RefsWanted, requested) -> Dict[str, Any]:
    by_type: Dict[str, int] = {}
    if wanted.branches:
        by_type["branches"] = refs.branches
    if wanted.tags:
        by_type["lightweight_tags"] = refs.lightweight_tags
        by_type["annotated_tags"] = refs.annotated_tags
    if wanted.remotes:
        by_type["remotes"] = refs.remotes
    if wanted.detached:
        by_type["detached"] = refs.detached
    if wanted.other:
        by_type["other"] = refs.other
    # Symrefs are already counted in their class above.
    if refs.symrefs:
        by_type["symrefs"] = refs.symrefs

    lengths: Dict[str, int] = {}
    if refs.len_sum_local:
        lengths["max_local"] = refs.len_max_local
        lengths["sum_local"] = refs.len_sum_local
    if refs.len_sum_remote:
        lengths["max_remote"] = refs.len_max_remote
        lengths["sum_remote"] = refs.len_sum_remote

    return {
        "count": refs.count_total,
        "count_by_type": by_type,
        "count_by_storage": {
            "loose_refs": refs.loose,
            "packed_refs": refs.packed,
        },
        "refname_length": lengths,
        "requested": list(requested),
        "count_by_class": [
            {"class": label, "count": count} for label, count in refs.sorted_classes()
        ],
    }


def survey_to_dict(stats: SurveyStats, config: SurveyConfig) -> Dict[str, Any]:
    with_name_rev = config.show_name_rev
    data = {
        "refs": refs_to_dict(stats.refs, config.wanted, stats.requested),
        "commits": stats.commits.to_dict(with_name_rev),
        "trees": stats.trees.to_dict(with_name_rev),
        "blobs": stats.blobs.to_dict(with_name_rev),
    }
    if stats.missing_untyped:
        data["missing_untyped"] = stats.missing_untyped
    return data


class JsonFormatter(BaseFormatter):
    """Render the survey as one indented JSON object."""

    def format(self, stats: SurveyStats, config: SurveyConfig) -> str:
        return json.dumps(survey_to_dict(stats, config), indent=2) + "\n"
