from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

from .models import MARKED, Assignment
from .units import Size, format_float

BAR_WIDTH = 0.6


def plot_assignment(
    assignment: Assignment,
    capacities: Sequence[Size],
    size: Callable[[Any], Size],
    *,
    marked_sizes: Optional[Sequence[Size]] = None,
    marked_placeholder: Any = MARKED,
    label: Callable[[Any], str] | None = None,
    figsize: tuple[float, float] = (6, 3.5),
) -> Figure:
    """Draw each bucket as a stacked bar of its items over the capacity outline."""

    fig = Figure(figsize=figsize)
    ax = fig.add_subplot(111)
    label = label or (lambda item: getattr(item, "label", str(item)))
    top = max(list(capacities) + [0.0])

    for index, contents in enumerate(assignment):
        left = index - BAR_WIDTH / 2
        ax.add_patch(
            Rectangle(
                (left, 0),
                BAR_WIDTH,
                capacities[index],
                fill=False,
                edgecolor="black",
                linestyle="--",
            )
        )
        bottom = 0.0
        for item in contents:
            if item is marked_placeholder:
                height = marked_sizes[index] if marked_sizes else 0.0
                patch = Rectangle(
                    (left, bottom), BAR_WIDTH, height,
                    facecolor="lightgrey", edgecolor="black", hatch="//",
                )
                text = "marked"
            else:
                height = size(item)
                patch = Rectangle(
                    (left, bottom), BAR_WIDTH, height,
                    facecolor="tab:blue", edgecolor="black", alpha=0.7,
                )
                text = label(item)
            ax.add_patch(patch)
            if height > 0:
                ax.text(index, bottom + height / 2, text, ha="center", va="center", fontsize=8)
            bottom += height
        top = max(top, bottom)

    ax.set_xlim(-0.5, max(len(assignment), 1) - 0.5)
    ax.set_ylim(0, top * 1.05 if top > 0 else 1.0)
    ax.set_xticks(range(len(assignment)))
    ax.set_xticklabels(
        [f"#{i + 1} ({format_float(capacities[i], 1)})" for i in range(len(assignment))]
    )
    ax.set_ylabel("size")
    return fig
