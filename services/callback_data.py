"""
Inline button payloads.

Every button the bot sends carries one of the intents below, encoded as a
short string. Telegram caps callback data at 64 bytes, so the encoding is
positional and underscore separated. Section keys never contain digits,
which keeps the numeric fields around them unambiguous.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union


MAX_CALLBACK_BYTES = 64


@dataclass(frozen=True)
class OpenDay:
    day: int


@dataclass(frozen=True)
class RevealSection:
    day: int
    section: str


@dataclass(frozen=True)
class AnswerQuestion:
    day: int
    section: str
    question: int
    option: int


@dataclass(frozen=True)
class AnswerChoice:
    day: int
    section: str
    item: int
    label: str


@dataclass(frozen=True)
class ShowProgress:
    pass


@dataclass(frozen=True)
class ShowHelp:
    pass


CallbackAction = Union[OpenDay, RevealSection, AnswerQuestion, AnswerChoice, ShowProgress, ShowHelp]

_OPEN_RE = re.compile(r'^open_(\d+)$')
_SECTION_RE = re.compile(r'^sec_(\d+)_([A-Za-z][A-Za-z_]*)$')
_ANSWER_RE = re.compile(r'^ans_(\d+)_([A-Za-z][A-Za-z_]*)_(\d+)_(\d+)$')
_CHOICE_RE = re.compile(r'^pick_(\d+)_([A-Za-z][A-Za-z_]*)_(\d+)_(.+)$', re.DOTALL)


def encode_callback_data(action: CallbackAction) -> str:
    if isinstance(action, OpenDay):
        data = f"open_{action.day}"
    elif isinstance(action, RevealSection):
        data = f"sec_{action.day}_{action.section}"
    elif isinstance(action, AnswerQuestion):
        data = f"ans_{action.day}_{action.section}_{action.question}_{action.option}"
    elif isinstance(action, AnswerChoice):
        data = f"pick_{action.day}_{action.section}_{action.item}_{action.label}"
    elif isinstance(action, ShowProgress):
        data = "progress"
    elif isinstance(action, ShowHelp):
        data = "help"
    else:
        raise TypeError(f"Unknown callback action: {action!r}")

    if len(data.encode('utf-8')) > MAX_CALLBACK_BYTES:
        raise ValueError(f"Callback data too long ({len(data.encode('utf-8'))} bytes): {data}")
    return data


def parse_callback_data(data: Optional[str]) -> Optional[CallbackAction]:
    """Decode a button payload. Returns None for anything unrecognised."""
    if not data:
        return None

    if data == "progress":
        return ShowProgress()
    if data == "help":
        return ShowHelp()

    match = _OPEN_RE.match(data)
    if match:
        return OpenDay(day=int(match.group(1)))

    match = _SECTION_RE.match(data)
    if match:
        return RevealSection(day=int(match.group(1)), section=match.group(2))

    match = _ANSWER_RE.match(data)
    if match:
        return AnswerQuestion(
            day=int(match.group(1)),
            section=match.group(2),
            question=int(match.group(3)),
            option=int(match.group(4)),
        )

    match = _CHOICE_RE.match(data)
    if match:
        return AnswerChoice(
            day=int(match.group(1)),
            section=match.group(2),
            item=int(match.group(3)),
            label=match.group(4),
        )

    return None
