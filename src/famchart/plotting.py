"""Visualization functions for chart layouts."""

import dataclasses
import logging
import math
from pathlib import Path
import re

import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Wedge
import pydot

from famchart.fan_chart import FanChartLayout, label_font_size, label_rotation, lineage_color, wrap_label_text
from famchart.pedigree import PedigreeLayout
from famchart.timeline import TimelineLayout, generate_time_ticks

logger = logging.getLogger(__name__)

# Graphviz positions are in points
POINTS_PER_INCH = 72.0

EVENT_BAR_COLOR = "#ad8aff"
PERSON_BAR_COLOR = "#18c8d8"
ACCENT_COLOR = "#ff7c1e"
LINK_COLOR = "darkgray"


def build_export_file_name(base_name: str, chart: str, extension: str) -> str:
    """'The Smith Family', 'fan', 'png' -> 'the-smith-family-fan.png'."""
    slug = re.sub(r"[^a-z0-9]+", "-", base_name.lower()).strip("-") or "family-tree"
    return f"{slug}-{chart}.{extension.lstrip('.')}"


def layout_to_dict(layout) -> dict:
    """Convert any layout dataclass into JSON-serialisable data."""

    def clean(value):
        if isinstance(value, dict):
            return {str(k): clean(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [clean(v) for v in value]
        if isinstance(value, (set, frozenset)):
            return sorted(clean(v) for v in value)
        return value

    return clean(dataclasses.asdict(layout))


def _sex_color(sex: str | None) -> str:
    if sex == "M":
        return "lightblue"
    if sex == "F":
        return "lightpink"
    return "lightgray"


def _save_or_show(fig, output_path: Path | None) -> None:
    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info("Chart saved to %s", output_path)
    else:
        plt.show()


# ============================================================================
# Pedigree (Graphviz)
# ============================================================================


def pedigree_to_dot(layout: PedigreeLayout) -> pydot.Dot:
    """
    Build a Graphviz graph with every node pinned at its layout position.

    Parent links go through a small point node at their junction, so all
    parents of one child share a trunk. Render with ``neato -n2`` to keep the
    positions.
    """
    P = pydot.Dot(graph_type="digraph")
    P.set("splines", "ortho")
    P.set("outputorder", "edgesfirst")
    P.set("bb", f"0,0,{layout.width},{layout.height}")

    def pos(x: float, y: float) -> str:
        # Graphviz y axis points up
        return f"{x},{layout.height - y}!"

    width_in = str(layout.node_width / POINTS_PER_INCH)
    height_in = str(layout.node_height / POINTS_PER_INCH)
    for node in layout.nodes:
        person = node.person
        birth_year = (person.birth_date or "")[:4]
        death_year = (person.death_date or "")[:4]
        P.add_node(
            pydot.Node(
                node.id,
                label=f"{person.given_names or ''}\n{person.surnames or ''}\n{birth_year}-{death_year}",
                shape="box",
                style="rounded,filled",
                fillcolor=_sex_color(person.sex),
                color=ACCENT_COLOR if node.id == layout.root_id else "black",
                penwidth="3" if node.id == layout.root_id else "1",
                fontsize="10",
                fixedsize="true",
                width=width_in,
                height=height_in,
                pos=pos(node.x + layout.node_width / 2, node.y + layout.node_height / 2),
            )
        )

    for link in layout.links:
        color = ACCENT_COLOR if link.is_highlighted else LINK_COLOR
        if link.type == "spouse":
            P.add_edge(
                pydot.Edge(
                    link.source_ids[0],
                    link.target_id,
                    dir="none",
                    color=color,
                    style="dashed" if link.is_curved else "solid",
                )
            )
            continue

        junction_id = f"junction_{link.target_id}"
        P.add_node(
            pydot.Node(
                junction_id,
                shape="point",
                width="0.05",
                height="0.05",
                label="",
                pos=pos(*link.junction),
            )
        )
        for parent_id in link.source_ids:
            P.add_edge(pydot.Edge(parent_id, junction_id, dir="none", color=color))
        P.add_edge(pydot.Edge(junction_id, link.target_id, color=color))

    return P


def write_pedigree(layout: PedigreeLayout, output_path: Path) -> Path:
    """Render a pedigree layout to png, svg, pdf or dot (by extension)."""
    P = pedigree_to_dot(layout)
    ext = output_path.suffix.lower().lstrip(".")
    if ext == "dot":
        P.write(str(output_path), format="raw")
    else:
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        P.write(str(output_path), prog=["neato", "-n2"], format=ext)
    logger.info("Pedigree saved to %s", output_path)
    return output_path


# ============================================================================
# Fan chart and timeline (matplotlib)
# ============================================================================


def plot_fan_chart(layout: FanChartLayout, output_path: Path | None = None):
    """
    Draw the fan chart as ring wedges around the root circle.

    Layout angles use screen coordinates (y down); matplotlib's y axis points
    up, so angles are negated.
    """
    fig, ax = plt.subplots(figsize=(12, 12))
    outer = layout.root_radius + layout.ring_width * max(layout.max_depth, 1)

    for node in layout.nodes:
        ax.add_patch(
            Wedge(
                (0, 0),
                node.outer_radius,
                -math.degrees(node.angle_end),
                -math.degrees(node.angle_start),
                width=node.outer_radius - node.inner_radius,
                facecolor=lineage_color(layout, node),
                edgecolor="white",
                linewidth=1,
            )
        )
        radius = (node.inner_radius + node.outer_radius) / 2
        arc_length = node.span * radius
        lines = wrap_label_text(node.person.full_name, max(int(arc_length / 7), 4), 2)
        ax.text(
            radius * math.cos(-node.mid_angle),
            radius * math.sin(-node.mid_angle),
            "\n".join(lines),
            ha="center",
            va="center",
            rotation=-label_rotation(node.mid_angle),
            fontsize=label_font_size(arc_length) * 0.7,
        )

    ax.add_patch(Circle((0, 0), layout.root_radius, facecolor=ACCENT_COLOR, edgecolor="white"))
    ax.text(0, 0, "\n".join(wrap_label_text(layout.root_person.full_name, 14, 2)), ha="center", va="center")

    ax.set_xlim(-outer, outer)
    ax.set_ylim(-outer, outer)
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_title(f"Fan chart for {layout.root_person.full_name}")
    fig.tight_layout()

    _save_or_show(fig, output_path)
    return fig


def plot_timeline(layout: TimelineLayout, output_path: Path | None = None):
    """Draw event rows above lifespan rows on a shared year axis."""
    event_rows = max(layout.event_row_count, 1)
    person_rows = max(layout.person_row_count, 1)
    fig, (event_ax, person_ax) = plt.subplots(
        2,
        1,
        sharex=True,
        figsize=(16, 2 + 0.35 * (event_rows + person_rows)),
        gridspec_kw={"height_ratios": [event_rows, person_rows]},
    )

    for event in layout.events:
        if event.is_point:
            event_ax.plot(event.start_year, event.row, marker="D", color=EVENT_BAR_COLOR, markersize=6)
        else:
            event_ax.hlines(event.row, event.start_year, event.end_year, color=EVENT_BAR_COLOR, linewidth=8)
        label = event.title if event.merged_count == 1 else f"{event.title} ({event.merged_count})"
        event_ax.text(event.start_year + 0.5, event.row, label, va="center", fontsize=7)

    for bar in layout.people:
        person_ax.barh(
            bar.row,
            max(bar.end_year - bar.start_year, 0.5),
            left=bar.start_year,
            height=0.7,
            color=PERSON_BAR_COLOR,
            alpha=0.6 if bar.is_ongoing else 1.0,
        )
        person_ax.text(bar.start_year + 0.5, bar.row, bar.full_name, va="center", fontsize=7)

    for ax, rows, title in ((event_ax, event_rows, "Life Events"), (person_ax, person_rows, "People")):
        ax.set_ylim(rows - 0.5, -0.5)
        ax.set_yticks([])
        ax.set_ylabel(title)
    person_ax.set_xlim(layout.min_year, layout.max_year)
    person_ax.set_xticks(generate_time_ticks(layout.min_year, layout.max_year))
    fig.tight_layout()

    _save_or_show(fig, output_path)
    return fig
