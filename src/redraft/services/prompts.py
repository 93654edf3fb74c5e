"""Prompt construction for each collaborator call.

Every builder returns a :class:`Prompt` holding the system instruction, the
user prompt, the sampling temperature, and whether JSON output is required.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from redraft.humanizer.styles import CitationStyle, ParaphraseMode, SummaryFormat, Tone

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MARKUP_RULES = (
    "OUTPUT FORMAT - NON-NEGOTIABLE:\n"
    "Return ONLY the full rewritten text with every change marked up.\n"
    "- Wrap each piece of text you remove in `~~`.\n"
    "- Immediately after it, wrap its replacement in `**`.\n"
    '- Example: "I ~~is~~**am** happy."\n'
    "- No commentary, no explanations."
)

# (upper bound of band, label, instructions)
_LEVEL_BANDS: tuple[tuple[int, str, str], ...] = (
    (
        20,
        "Subtle",
        "Refine rather than rewrite. Rephrase for flow and clarity, adjust sentence "
        "structure slightly to avoid monotony, keep a professional tone.",
    ),
    (
        40,
        "Natural",
        "Make the text sound less robotic. Vary sentence length moderately and "
        "introduce common contractions.",
    ),
    (
        60,
        "Casual",
        "Adopt a conversational persona. Mix long sentences with short fragments "
        "and use slightly more informal language and common idioms.",
    ),
    (
        80,
        "Very Human",
        "Use informal, conversational phrasing and light slang. Prefer an authentic "
        "voice over perfect grammar; run-on sentences are fine if they sound natural.",
    ),
    (
        100,
        "Chaotic Human",
        "Be highly unpredictable in word choice and sentence structure. Use "
        "fragments, slang and humor freely.",
    ),
)

_TONE_INSTRUCTIONS: dict[Tone, str] = {
    Tone.NEUTRAL: "Keep an objective, balanced, impartial tone without emotional language.",
    Tone.FRIENDLY: "Use a warm, approachable, conversational style with contractions.",
    Tone.PROFESSIONAL: "Use formal language and a respectful, objective tone; avoid slang.",
    Tone.CONFIDENT: "Use strong declarative sentences and avoid hedging words.",
}

_PARAPHRASE_INSTRUCTIONS: dict[ParaphraseMode, str] = {
    ParaphraseMode.SIMPLER: "Rephrase the text to be much simpler for a general audience.",
    ParaphraseMode.BALANCED: "Rephrase the text while keeping its original tone and meaning.",
    ParaphraseMode.FORMAL: "Rephrase the text to sound more formal, academic and professional.",
    ParaphraseMode.CREATIVE: "Rephrase the text creatively with unique vocabulary and structure.",
    ParaphraseMode.EXPAND: "Expand the text, elaborating on its key points with relevant detail.",
    ParaphraseMode.SHORTEN: "Condense the text without losing critical information.",
}

_DETECTOR_SYSTEM = (
    "You are an expert in computational linguistics acting as a highly accurate "
    "AI text detector. Decide whether a text was written by a human or generated "
    "by an AI, looking past surface grammar."
)

_DETECTOR_TELLS = (
    "Look for predictable word choice, uniform sentence structure (low burstiness), "
    "stiff transitions, lack of a distinct voice, flawless but soulless prose, and "
    "list-like structure inside paragraphs. Do NOT penalize text merely for being "
    "formal or technical."
)


@dataclass(frozen=True, slots=True)
class Prompt:
    """A fully assembled request for the language model."""

    system: str
    user: str
    temperature: float = 0.7
    json_mode: bool = False


def _level_band(intensity: int) -> tuple[str, str]:
    for upper, label, instructions in _LEVEL_BANDS:
        if intensity <= upper:
            return label, instructions
    return _LEVEL_BANDS[-1][1], _LEVEL_BANDS[-1][2]


def humanize_temperature(intensity: int) -> float:
    """Scale temperature from 0.5 to 1.0 with intensity."""
    return 0.5 + (intensity / 100) * 0.5


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_humanize(text: str, tone: Tone, intensity: int) -> Prompt:
    """Humanizer rewrite at a given intensity band and tone."""
    label, instructions = _level_band(intensity)
    system = "\n\n".join(
        [
            "You are a text humanizer. Rewrite text so it reads as authentically "
            "human-written while preserving its meaning.",
            f"Level: {label} ({intensity}/100)\n{instructions}",
            f"Tone: {tone.value}\n{_TONE_INSTRUCTIONS[tone]}",
            _MARKUP_RULES,
        ]
    )
    user = f"Apply your process (Level: {intensity}, Tone: {tone.value}) to:\n\n{text}"
    return Prompt(system=system, user=user, temperature=humanize_temperature(intensity))


def build_paraphrase(text: str, mode: ParaphraseMode) -> Prompt:
    """Paraphraser rewrite in a given mode."""
    system = "\n\n".join(
        [
            "You are an expert writer. Paraphrase the given text while preserving "
            "its core meaning.",
            _PARAPHRASE_INSTRUCTIONS[mode],
            _MARKUP_RULES,
        ]
    )
    temperature = 0.9 if mode is ParaphraseMode.CREATIVE else 0.7
    return Prompt(system=system, user=f"Text to paraphrase:\n\n{text}", temperature=temperature)


def build_proofread(text: str) -> Prompt:
    """Grammar and spelling correction with change markup."""
    system = "\n\n".join(
        [
            "You are a meticulous proofreader. Correct grammar, spelling and "
            "punctuation and change nothing else.",
            _MARKUP_RULES,
        ]
    )
    return Prompt(system=system, user=f"Text:\n\n{text}", temperature=0.0)


def build_detect(text: str) -> Prompt:
    """Detector request returning ``score``/``explanation``/``suspiciousSentences`` JSON."""
    user = (
        f"{_DETECTOR_TELLS}\n\n"
        "Respond with a JSON object with keys:\n"
        '- "score": number from 0 (very likely human) to 100 (very likely AI)\n'
        '- "explanation": string citing evidence from the text\n'
        '- "suspiciousSentences": array of the most AI-like sentences\n\n'
        f"Text to analyze:\n\n{text}"
    )
    return Prompt(system=_DETECTOR_SYSTEM, user=user, temperature=0.0, json_mode=True)


def build_summarize(text: str, fmt: SummaryFormat, word_count: int) -> Prompt:
    """Summary of roughly ``word_count`` words."""
    shape = "a single paragraph" if fmt is SummaryFormat.PARAGRAPH else "key bullet points"
    return Prompt(
        system="You are an expert summarizer. Distill text into clear, accurate summaries.",
        user=f"Summarize the following text in approximately {word_count} words, "
        f"formatted as {shape}. Return only the summary.\n\n{text}",
        temperature=0.5,
    )


def build_complete(text: str) -> Prompt:
    """Continuation to append to ``text``."""
    return Prompt(
        system="You are an expert writer who continues texts seamlessly.",
        user="Continue writing from the text below. Add one or two paragraphs that "
        "logically follow. Return only the new text to append.\n---\n" + text,
        temperature=0.7,
    )


def build_analyze(text: str) -> Prompt:
    """Readability/tone/word-count analysis as JSON."""
    return Prompt(
        system="You are a text analysis expert.",
        user="Analyze the text and respond with a JSON object with keys "
        '"readability" (reading level description), "tone" (short description of '
        'the dominant tone) and "wordCount" (number).\n\n' + text,
        temperature=0.0,
        json_mode=True,
    )


def build_research(topic: str) -> Prompt:
    """Topic summary with sources as JSON."""
    return Prompt(
        system="You are a research assistant who cites verifiable sources.",
        user=f'Provide a concise summary of the topic "{topic}". Respond with a JSON '
        'object with keys "summary" (string) and "sources" (array of objects with '
        '"uri" and "title").',
        temperature=0.3,
        json_mode=True,
    )


def build_find_sources(text: str) -> Prompt:
    """Possible published sources of ``text`` as JSON."""
    return Prompt(
        system="You are a plagiarism checker.",
        user="Does the following text appear elsewhere? Respond with a JSON object "
        'with key "sources": an array of objects with "uri" and "title" (empty if '
        "none).\n\n" + text,
        temperature=0.0,
        json_mode=True,
    )


def build_citation(style: CitationStyle, source_data: Mapping[str, str]) -> Prompt:
    """A single formatted citation."""
    if source_data.get("url"):
        info = f"Generate a citation for the content at this URL: {source_data['url']}"
    else:
        lines = [f"{key}: {value}" for key, value in source_data.items() if value]
        info = "Source information:\n" + "\n".join(lines)
    return Prompt(
        system="You are an expert academic librarian. Provide only the formatted citation.",
        user=f"Generate a single, complete citation in {style.value} format.\n{info}",
        temperature=0.0,
    )
