"""Family tree chart layouts: pedigree, fan chart and timeline."""

from famchart.errors import InvalidRootError
from famchart.fan_chart import FanChartConfig, FanChartLayout, FanChartNode, layout_fan_chart
from famchart.graph import GraphIndex, build_graph_index, compute_generations
from famchart.models import Claim, ClaimValue, Person, Relationship
from famchart.pedigree import PedigreeConfig, PedigreeLayout, PedigreeLink, PedigreeNode, layout_pedigree
from famchart.timeline import (
    TimelineConfig,
    TimelineEventBar,
    TimelineFilters,
    TimelineLayout,
    TimelinePersonBar,
    layout_timeline,
)

__version__ = "0.1.0"

__all__ = [
    "Claim",
    "ClaimValue",
    "FanChartConfig",
    "FanChartLayout",
    "FanChartNode",
    "GraphIndex",
    "InvalidRootError",
    "PedigreeConfig",
    "PedigreeLayout",
    "PedigreeLink",
    "PedigreeNode",
    "Person",
    "Relationship",
    "TimelineConfig",
    "TimelineEventBar",
    "TimelineFilters",
    "TimelineLayout",
    "TimelinePersonBar",
    "build_graph_index",
    "compute_generations",
    "layout_fan_chart",
    "layout_pedigree",
    "layout_timeline",
]
