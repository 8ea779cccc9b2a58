"""
Content loader for the advent calendar.

The catalog lives in a single JSON file keyed by day number. Each entry is
parsed once into typed records; the bot never mutates it at runtime. The
import script reuses the same parser to sync the `days` collection.
"""

import json
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from config.settings import Config
from services.callback_data import AnswerChoice, AnswerQuestion, RevealSection, encode_callback_data


logger = logging.getLogger(__name__)

SECTION_KEY_PATTERN = re.compile(r'^[A-Za-z][A-Za-z_]*$')
STEP_TYPES = {'text', 'image', 'video', 'quiz', 'menu'}
DEFAULT_MENU_SECTIONS = (
    ('main', '📜 Text des Tages'),
    ('vocab', '💡 Vokabeln'),
    ('reading', '📘 Leseverstehen'),
)
DEFAULT_MENU_PROMPT = '👇 Wähle weiter:'


class ContentError(ValueError):
    """Raised when the catalog file is structurally invalid."""


@dataclass
class Question:
    q: str
    options: List[str]
    correct: int
    explanation: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        options = data.get('options') or []
        if not options:
            raise ContentError(f"Question '{data.get('q', '')}' has no options")
        correct = int(data.get('correct', 0))
        if not 0 <= correct < len(options):
            raise ContentError(f"Question '{data.get('q', '')}' has correct index {correct} out of range")
        return cls(
            q=data.get('q', ''),
            options=[str(option) for option in options],
            correct=correct,
            explanation=data.get('explanation') or '',
        )


@dataclass
class Section:
    key: str
    title: str = ''
    text: str = ''
    intro: str = ''
    file_path: Optional[str] = None
    questions: List[Question] = field(default_factory=list)
    items: List[str] = field(default_factory=list)
    choices: List[str] = field(default_factory=list)
    solutions: List[str] = field(default_factory=list)

    @property
    def kind(self) -> str:
        if self.questions:
            return 'quiz'
        if self.items:
            return 'choice'
        return 'text'

    def question(self, index: int) -> Optional[Question]:
        if 0 <= index < len(self.questions):
            return self.questions[index]
        return None

    def solution(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.solutions):
            return self.solutions[index]
        return None

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> 'Section':
        if not SECTION_KEY_PATTERN.match(key):
            raise ContentError(f"Invalid section key '{key}'")
        section = cls(
            key=key,
            title=data.get('title', ''),
            text=data.get('text', ''),
            intro=data.get('intro', ''),
            file_path=data.get('file_path'),
            questions=[Question.from_dict(q) for q in data.get('questions', [])],
            items=list(data.get('items', [])),
            choices=list(data.get('choices', [])),
            solutions=list(data.get('solutions', [])),
        )
        if section.items and len(section.choices) != 2:
            raise ContentError(f"Section '{key}' needs exactly two choices")
        return section


@dataclass
class PresentationStep:
    type: str
    section: Optional[str] = None
    text: Optional[str] = None
    path: Optional[str] = None
    heading: bool = False
    prompt: str = DEFAULT_MENU_PROMPT
    buttons: List[Dict[str, str]] = field(default_factory=list)
    next_day: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PresentationStep':
        step_type = data.get('type')
        if step_type not in STEP_TYPES:
            raise ContentError(f"Unknown presentation step type '{step_type}'")
        return cls(
            type=step_type,
            section=data.get('section'),
            text=data.get('text'),
            path=data.get('path'),
            heading=bool(data.get('heading', False)),
            prompt=data.get('prompt', DEFAULT_MENU_PROMPT),
            buttons=list(data.get('buttons', [])),
            next_day=bool(data.get('next_day', True)),
        )


@dataclass
class Day:
    day_number: int
    title: str = ''
    header: str = ''
    sections: Dict[str, Section] = field(default_factory=dict)
    steps: List[PresentationStep] = field(default_factory=list)
    publish_date: Optional[datetime] = None
    draft: bool = False

    def section(self, key: str) -> Optional[Section]:
        return self.sections.get(key)

    def to_document(self) -> Dict[str, Any]:
        """Shape stored in the `days` collection."""
        return {
            'day_number': self.day_number,
            'title': self.title,
            'header': self.header,
            'sections': {key: asdict(section) for key, section in self.sections.items()},
            'steps': [asdict(step) for step in self.steps],
            'media': [
                {'type': step.type, 'path': step.path}
                for step in self.steps if step.type in ('image', 'video')
            ],
            'publish_date': self.publish_date,
            'draft': self.draft,
        }


def parse_publish_date(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 publish date. Naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError as e:
            raise ContentError(f"Invalid publish_date '{value}'") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def default_steps(sections: Dict[str, Section], title: str = '') -> List[PresentationStep]:
    """Steps for days that don't declare their own: day text, then a menu."""
    steps = []
    if 'main' in sections:
        steps.append(PresentationStep(type='text', section='main', heading=True))
    elif title:
        steps.append(PresentationStep(type='text', text=title, heading=True))
    buttons = [
        {'label': label, 'section': key}
        for key, label in DEFAULT_MENU_SECTIONS
        if key in sections and (key != 'main' or sections[key].text)
    ]
    steps.append(PresentationStep(type='menu', buttons=buttons))
    return steps


def _check_callback_sizes(day_number: int, section: Section) -> None:
    """Every button a section can produce must fit Telegram's callback data limit."""
    actions = [RevealSection(day_number, section.key)]
    for index, question in enumerate(section.questions):
        actions.append(AnswerQuestion(day_number, section.key, index, len(question.options) - 1))
    for index in range(len(section.items)):
        actions.extend(AnswerChoice(day_number, section.key, index, label) for label in section.choices)
    for action in actions:
        try:
            encode_callback_data(action)
        except ValueError as e:
            raise ContentError(f"Day {day_number} section '{section.key}': {e}") from e


def parse_day(key: str, data: Dict[str, Any]) -> Day:
    day_number = int(data.get('day_number') or key)
    sections = {
        section_key: Section.from_dict(section_key, section_data)
        for section_key, section_data in (data.get('sections') or {}).items()
    }
    for section in sections.values():
        _check_callback_sizes(day_number, section)
    if 'steps' in data:
        steps = [PresentationStep.from_dict(step) for step in data['steps']]
    else:
        steps = default_steps(sections, data.get('title', ''))

    for step in steps:
        if step.type in ('image', 'video') and not step.path:
            raise ContentError(f"Day {day_number} {step.type} step has no path")
        if step.type == 'quiz' and not step.section:
            raise ContentError(f"Day {day_number} quiz step has no section")
        if step.type == 'text' and not (step.section or step.text):
            raise ContentError(f"Day {day_number} text step has neither section nor text")
        if step.section and step.section not in sections:
            raise ContentError(f"Day {day_number} step references missing section '{step.section}'")
        for button in step.buttons:
            if not button.get('label'):
                raise ContentError(f"Day {day_number} menu button without label")
            if button.get('section') not in sections:
                raise ContentError(f"Day {day_number} menu references missing section '{button.get('section')}'")

    return Day(
        day_number=day_number,
        title=data.get('title', ''),
        header=data.get('header') or data.get('intro_text') or '',
        sections=sections,
        steps=steps,
        publish_date=parse_publish_date(data.get('publish_date')),
        draft=bool(data.get('draft', False)),
    )


class ContentLoader:
    """Read-only catalog of days, loaded lazily from the content file."""

    def __init__(self, content_file: Optional[Path] = None, media_dir: Optional[Path] = None):
        self.content_file = Path(content_file or Config.CONTENT_FILE)
        self.media_dir = Path(media_dir or Config.MEDIA_DIR)
        self._days: Optional[Dict[int, Day]] = None

    def load_content(self) -> Dict[int, Day]:
        """
        Load and parse the catalog file.

        Raises:
            ContentError: if the file is missing, not valid JSON, or malformed.
        """
        if self._days is not None:
            return self._days

        if not self.content_file.exists():
            raise ContentError(f"Content file not found at {self.content_file}")

        try:
            with open(self.content_file, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ContentError(f"Invalid JSON in {self.content_file}: {e}") from e

        if not isinstance(raw, dict):
            raise ContentError(f"Content root must be an object keyed by day, got {type(raw).__name__}")

        days = {}
        for key, data in raw.items():
            day = parse_day(key, data)
            days[day.day_number] = day

        logger.info(f"Loaded {len(days)} days from {self.content_file}")
        self._days = days
        return days

    def get_day(self, day_number: int) -> Optional[Day]:
        return self.load_content().get(day_number)

    def get_section(self, day_number: int, section_key: str) -> Optional[Section]:
        day = self.get_day(day_number)
        if not day:
            return None
        return day.section(section_key)

    def resolve_media(self, relative_path: Optional[str]) -> Optional[Path]:
        """Absolute path for a media reference, or None when the file is missing."""
        if not relative_path:
            return None
        path = self.media_dir / relative_path
        if not path.is_file():
            logger.warning(f"Media file not found: {path}")
            return None
        return path

    def validate_content_structure(self) -> None:
        """Log gaps in the catalog. Missing days are reported, not fatal."""
        days = self.load_content()
        logger.info("Validating content structure...")

        missing = [n for n in range(1, Config.TOTAL_DAYS + 1) if n not in days]
        if missing:
            logger.warning(f"Days missing from catalog: {missing}")

        extra = [n for n in days if not 1 <= n <= Config.TOTAL_DAYS]
        if extra:
            logger.warning(f"Days outside 1..{Config.TOTAL_DAYS} will never be offered: {extra}")

        for day in days.values():
            for step in day.steps:
                if step.type in ('image', 'video') and step.path and not (self.media_dir / step.path).is_file():
                    logger.warning(f"Day {day.day_number}: {step.type} '{step.path}' not found under {self.media_dir}")


# Create a singleton instance
content_loader = ContentLoader()
