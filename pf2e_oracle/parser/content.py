"""
Foundry Markup Cleaner

Rewrites Foundry VTT enrichment tags and HTML in compendium text into
plain, readable prose for embedding and prompting.

Each pass is a standalone pure function over a string:
    @UUID[...]{Label}              -> Label
    @UUID[...Item.CastSpell]       -> Cast Spell
    @Check[fortitude|dc:22|basic]  -> basic Fortitude DC 22
    @Damage[(2d6+4)[fire]]         -> 2d6+4 fire damage
    @Template[cone|distance:30]    -> 30-foot cone
    @Localize[PF2E.Foo.Tremorsense] -> Tremorsense
    @Embed[...]                    -> (removed)
    [[/r 1d20]]                    -> 1d20
    HTML                           -> plain text with simple list/rule markers
"""

import re
from typing import Callable

# --- Tag Patterns ---

UUID_WITH_LABEL = re.compile(r"@UUID\[[^\]]+\]\{([^}]+)\}")
UUID_WITHOUT_LABEL = re.compile(r"@UUID\[(?:[^.\]]+\.)*([^.\]]+)\]")
CHECK_TAG = re.compile(r"@Check\[([^|\]]+)(?:\|dc:(\d+))?(?:\|([^|\]]+))?(?:\|[^\]]*)?\]")
DAMAGE_TAG = re.compile(r"@Damage\[(\(?[\w+\-*/]+\)?)\[([^\]]+)\]\]")
TEMPLATE_TAG = re.compile(r"@Template\[([^|\]]+)\|distance:(\d+)\]")
LOCALIZE_TAG = re.compile(r"@Localize\[(?:[^.\]]+\.)*([^.\]]+)\]")
EMBED_TAG = re.compile(r"@Embed\[[^\]]+\]")
DICE_ROLL = re.compile(r"\[\[/r\s+([^\]]+)\]\]")

CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")

# --- HTML Patterns (applied in order) ---

HTML_REWRITES = [
    (re.compile(r"<p>|</p>"), "\n"),
    (re.compile(r"<strong>|</strong>"), ""),
    (re.compile(r"<em>|</em>"), ""),
    (re.compile(r"<hr\s*/?>"), "\n---\n"),
    (re.compile(r"<h[1-6]>|</h[1-6]>"), "\n"),
    (re.compile(r"<ul>|</ul>|<ol>|</ol>"), "\n"),
    (re.compile(r"<li>|</li>"), "\n- "),
    (re.compile(r"<span[^>]*>|</span>"), ""),
    (re.compile(r"<[^>]+>"), ""),
]

MULTIPLE_NEWLINES = re.compile(r"\n{3,}")
MULTIPLE_SPACES = re.compile(r" {2,}")


def split_camel_case(value: str) -> str:
    """CastSpell -> Cast Spell"""
    return CAMEL_BOUNDARY.sub(r"\1 \2", value)


def _capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:]


# =============================================================================
# Passes
# =============================================================================


def clean_uuid_labels(content: str) -> str:
    return UUID_WITH_LABEL.sub(lambda m: m.group(1), content)


def clean_uuid_references(content: str) -> str:
    """Replace unlabeled references with the last path segment, made readable."""
    return UUID_WITHOUT_LABEL.sub(
        lambda m: _capitalize_first(split_camel_case(m.group(1))), content
    )


def clean_uuid_tags(content: str) -> str:
    return clean_uuid_references(clean_uuid_labels(content))


def _render_check(match: re.Match) -> str:
    check_type = _capitalize_first(match.group(1)).replace("-", " ")
    dc = match.group(2) or ""
    modifier = (match.group(3) or "").strip()

    parts = []
    if modifier:
        parts.append(modifier)
    parts.append(check_type)
    if dc:
        parts.append(f"DC {dc}")
    return " ".join(parts)


def clean_check_tags(content: str) -> str:
    return CHECK_TAG.sub(_render_check, content)


def clean_damage_tags(content: str) -> str:
    return DAMAGE_TAG.sub(lambda m: f"{m.group(1).strip('()')} {m.group(2)} damage", content)


def clean_template_tags(content: str) -> str:
    return TEMPLATE_TAG.sub(lambda m: f"{m.group(2)}-foot {m.group(1)}", content)


def clean_localize_tags(content: str) -> str:
    return LOCALIZE_TAG.sub(lambda m: split_camel_case(m.group(1)), content)


def clean_embed_tags(content: str) -> str:
    return EMBED_TAG.sub("", content)


def clean_dice_rolls(content: str) -> str:
    return DICE_ROLL.sub(lambda m: m.group(1).strip(), content)


def clean_html_tags(content: str) -> str:
    for pattern, replacement in HTML_REWRITES:
        content = pattern.sub(replacement, content)
    return content


def normalize_whitespace(content: str) -> str:
    content = MULTIPLE_NEWLINES.sub("\n\n", content)
    content = MULTIPLE_SPACES.sub(" ", content)
    return content.strip()


CLEANUP_PASSES: list[Callable[[str], str]] = [
    clean_uuid_labels,
    clean_uuid_references,
    clean_check_tags,
    clean_damage_tags,
    clean_template_tags,
    clean_localize_tags,
    clean_embed_tags,
    clean_dice_rolls,
    clean_html_tags,
    normalize_whitespace,
]


def _run_passes(content: str) -> str:
    for cleanup in CLEANUP_PASSES:
        content = cleanup(content)
    return content


def clean_content(content: str) -> str:
    """
    Clean Foundry markup from text.

    The pass list is re-run until the text stops changing, so a tag that
    only becomes recognizable after an earlier rewrite (for instance a
    reference nested in a label) is also resolved and
    clean_content(clean_content(x)) == clean_content(x). Every rewrite
    consumes tag characters and inserts none, so the loop terminates.

    Args:
        content: Raw description text (may be empty)

    Returns:
        Plain text
    """
    if not content:
        return ""

    cleaned = _run_passes(content)
    while True:
        again = _run_passes(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again
