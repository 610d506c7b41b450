from __future__ import annotations

from collections.abc import Sequence

from baseline.domain.models import SOURCE_ORDER, TOPIC_CATEGORIES, RankedCandidate

# The editor persona - injected every single time
SYSTEM_INSTRUCTIONS = """
You are the editor of **Baseline**, a data-driven debate dashboard that surfaces America's most
genuinely divisive policy and social debates.

**OPERATIONAL RULES:**
1. **Substance only:** policy, rights, economics, science, civil liberties. Never sports, entertainment or celebrity drama.
2. **Neutrality:** describe both camps fairly; never take a side.
3. **Format:** Your output must be a single valid JSON object matching the requested schema. No markdown.
"""

SELECTION_CRITERIA = """
SELECTION CRITERIA (all must be met):
1. Genuine societal debate — policy, rights, economics, science, civil liberties. NOT sports, entertainment, celebrity drama.
2. Strongly polarized — Americans are genuinely split on this, ideally with clear "pro" and "con" camps.
3. Sufficient empirical ground — there must be real polling data, verifiable claims, and fact-checkable arguments.
4. {timeliness}
5. NOT recently covered — do not repeat these recent topics: {recent}
"""

RESPONSE_SCHEMA = """
Respond with a JSON object in exactly this format:
{{
  "selected_title": "Concise, precise topic title suitable for a headline",
  "category": "one of: {categories}",
  "summary": "2-3 sentences explaining what the debate is about and why it matters. Neutral, factual tone.",
  "trending_reason": "{trending_reason}",
  "divisiveness_explanation": "1-2 sentences explaining WHY this topic is genuinely divisive — what values or interests are in conflict.",
  "selection_reasoning": "1-2 sentences explaining why you chose this topic over others."
}}
"""

SIGNAL_LABELS = {
    "discussion": "Reddit divisiveness",
    "trends": "Google Trends",
    "video": "YouTube divisiveness",
}


def _recent_list(recent_titles: Sequence[str]) -> str:
    return ", ".join(recent_titles) if recent_titles else "(none)"


def format_candidates(candidates: Sequence[RankedCandidate]) -> str:
    """Render ranked candidates as a numbered, token-efficient block."""
    blocks: list[str] = []
    for index, candidate in enumerate(candidates, 1):
        sources = ", ".join(sorted(source.value for source in candidate.contributing_sources)) or "none"
        signals = " | ".join(
            f"{SIGNAL_LABELS[source.value]}: {candidate.per_source_signals.get(source, 0.0):.2f}"
            for source in SOURCE_ORDER
        )
        block = (
            f'{index}. "{candidate.title}"\n'
            f"   Score: {candidate.composite_score:.2f} | Sources: {sources}\n"
            f"   {signals}"
        )
        if candidate.discussion_comments or candidate.subreddits:
            subreddits = ", ".join(f"r/{name}" for name in candidate.subreddits) or "n/a"
            block += f"\n   Reddit comments: {candidate.discussion_comments} | Subreddits: {subreddits}"
        blocks.append(block)
    return "\n\n".join(blocks)


def build_selection_prompt(
    candidates: Sequence[RankedCandidate],
    recent_titles: Sequence[str],
    date: str,
) -> str:
    """Prompt asking the decision-maker to pick one topic from ranked candidates.

    Recency filtering happens here, in the model, not in the ranking engine:
    the recent titles are listed and the model is told to avoid them.
    """
    criteria = SELECTION_CRITERIA.format(
        timeliness="Timely — the debate is active RIGHT NOW, not something resolved years ago.",
        recent=_recent_list(recent_titles),
    )
    schema = RESPONSE_SCHEMA.format(
        categories="|".join(TOPIC_CATEGORIES),
        trending_reason=(
            "2-3 sentences explaining where this debate is currently happening — which platforms, "
            "what events triggered it. Cite the platforms from the signal data."
        ),
    )
    return (
        f"Today's date: {date}\n\n"
        "Below are trending topic candidates ranked by a composite signal score "
        "(Reddit divisiveness + YouTube engagement + Google Trends). "
        "Select ONE topic that best meets all criteria.\n"
        f"{criteria}\n"
        f"CANDIDATES:\n{format_candidates(candidates)}\n"
        f"{schema}"
    )


def build_fallback_prompt(recent_titles: Sequence[str], date: str) -> str:
    """Prompt for choosing a topic from model knowledge alone when no signals exist."""
    criteria = SELECTION_CRITERIA.format(
        timeliness=f"Timely for {date} — the debate was active and prominent around this specific date.",
        recent=_recent_list(recent_titles),
    )
    schema = RESPONSE_SCHEMA.format(
        categories="|".join(TOPIC_CATEGORIES),
        trending_reason=(
            f"2-3 sentences describing what was driving this debate around {date} — key events, "
            "court cases, legislation, or news stories that made it prominent."
        ),
    )
    return (
        f"Date: {date}\n\n"
        "No real-time trending data is available. Based on your knowledge of what was happening in "
        f"American politics, law, and society around {date}, select ONE topic.\n"
        f"{criteria}\n"
        "Think about what was dominating political discussion, congressional debates, court rulings, "
        "executive orders, or major social movements at the time.\n"
        f"{schema}"
    )
