"""
Brain map renderer - The knowledge graph grouped by status.

HTML for the Streamlit app, plain text for the CLI.
"""

import html

from tutorlab.schemas import KnowledgeItem

GROUP_LABELS = {
    "struggling": ("🔴", "Needs Review"),
    "reviewing": ("🟡", "Learning"),
    "mastered": ("🟢", "Mastered"),
}


def get_brain_map_css() -> str:
    return """
    <style>
    .brain-group {
        margin: 1em 0;
    }
    .brain-group-title {
        font-weight: 700;
        margin-bottom: 0.4em;
    }
    .brain-item {
        display: flex;
        align-items: center;
        margin: 0.3em 0;
        font-size: 0.95em;
    }
    .brain-item-name {
        min-width: 220px;
    }
    .strength-bar {
        flex: 1;
        height: 8px;
        background: #e2e8f0;
        border-radius: 4px;
        overflow: hidden;
    }
    .strength-fill {
        height: 100%;
        background: #3b82f6;
    }
    </style>
    """


def render_brain_map(groups: dict[str, list[KnowledgeItem]]) -> str:
    """
    Render grouped knowledge items as HTML.

    Args:
        groups: Output of KnowledgeTracker.brain_map()
    """
    if not any(groups.values()):
        return '<p>No concepts tracked yet. Finish a lesson to start your brain map.</p>'

    parts = []
    for key, (icon, label) in GROUP_LABELS.items():
        items = groups.get(key, [])
        if not items:
            continue
        parts.append('<div class="brain-group">')
        parts.append(f'<div class="brain-group-title">{icon} {label} ({len(items)})</div>')
        for item in items:
            parts.append(
                f'<div class="brain-item">'
                f'<span class="brain-item-name">{html.escape(item.id)}</span>'
                f'<div class="strength-bar"><div class="strength-fill" style="width:{item.strength}%"></div></div>'
                f'</div>'
            )
        parts.append('</div>')
    return ''.join(parts)


def format_brain_map(groups: dict[str, list[KnowledgeItem]]) -> str:
    """Plain-text brain map for terminal output."""
    if not any(groups.values()):
        return "No concepts tracked yet."

    lines = []
    for key, (icon, label) in GROUP_LABELS.items():
        items = groups.get(key, [])
        if not items:
            continue
        lines.append(f"{icon} {label}")
        for item in items:
            lines.append(f"   - {item.id} ({item.strength}%)")
    return "\n".join(lines)
