"""Registry of known JSON page sections.

Site pages are free-form JSON documents, but they are built from a small set
of recognisable sections (quick links, officers, events, ...). Each section
is registered as a SectionSchema: a detector over the parsed document plus
a validator for that section's shape. New page shapes are supported by
registering another schema rather than by growing a conditional chain.

Validation is advisory: problems are reported to the operator and never
block a save.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Detector = Callable[[Any], bool]
Validator = Callable[[Any], List[str]]


@dataclass(frozen=True)
class SectionSchema:
    """A recognisable section of a JSON page.

    Attributes:
        name: Registry key, e.g. "state_officers"
        title: Human-readable label
        detect: Returns True when the document contains this section
        validate: Returns a list of problems (empty when well-formed)
        key: Top-level key holding the section, or None for whole-document
             sections such as the competitions list
    """

    name: str
    title: str
    detect: Detector
    validate: Validator
    key: Optional[str] = None


@dataclass(frozen=True)
class DetectedSection:
    """A schema that matched a document, with its validation outcome."""

    schema: SectionSchema
    problems: List[str]

    @property
    def is_valid(self) -> bool:
        return not self.problems


class SchemaRegistry:
    """Maps detected document shapes to section schemas.

    Example:
        >>> registry = default_registry()
        >>> [s.schema.name for s in registry.detect({"creed": ["..."]})]
        ['creed']
    """

    def __init__(self):
        self._schemas: Dict[str, SectionSchema] = {}

    def register(self, schema: SectionSchema) -> SectionSchema:
        """Add a schema. Registering an existing name replaces it.

        Returns:
            The registered schema
        """
        if schema.name in self._schemas:
            logger.debug(f"Replacing section schema '{schema.name}'")
        self._schemas[schema.name] = schema
        return schema

    def unregister(self, name: str) -> None:
        self._schemas.pop(name, None)

    def get(self, name: str) -> SectionSchema:
        return self._schemas[name]

    @property
    def names(self) -> List[str]:
        return list(self._schemas)

    def detect(self, document: Any) -> List[DetectedSection]:
        """Return every section present in the document, in registration order."""
        detected = []
        for schema in self._schemas.values():
            try:
                matched = schema.detect(document)
            except (KeyError, IndexError, TypeError, AttributeError):
                matched = False
            if matched:
                detected.append(DetectedSection(schema=schema, problems=schema.validate(document)))
        return detected

    def validate_document(self, document: Any) -> List[str]:
        """Collect problems from every detected section, prefixed by section name."""
        problems = []
        for section in self.detect(document):
            problems.extend(f"{section.schema.name}: {problem}" for problem in section.problems)
        return problems


def _has_key(key: str) -> Detector:
    # Sections are only rendered for truthy values
    return lambda doc: isinstance(doc, dict) and bool(doc.get(key))


def _list_of_records(key: Optional[str], required: List[str]) -> Validator:
    """Validator for a list of objects that each carry the required keys."""

    def validate(doc: Any) -> List[str]:
        value = doc if key is None else doc.get(key)
        if not isinstance(value, list):
            return [f"expected a list, got {type(value).__name__}"]
        problems = []
        for index, item in enumerate(value):
            if not isinstance(item, dict):
                problems.append(f"item {index} is not an object")
                continue
            missing = [field for field in required if field not in item]
            if missing:
                problems.append(f"item {index} is missing {', '.join(missing)}")
        return problems

    return validate


def _list_of_strings(key: str) -> Validator:
    def validate(doc: Any) -> List[str]:
        value = doc.get(key)
        if not isinstance(value, list):
            return [f"expected a list, got {type(value).__name__}"]
        return [
            f"item {index} is not a string"
            for index, item in enumerate(value)
            if not isinstance(item, str)
        ]

    return validate


def _string(key: str) -> Validator:
    def validate(doc: Any) -> List[str]:
        value = doc.get(key)
        return [] if isinstance(value, str) else [f"expected a string, got {type(value).__name__}"]

    return validate


def _object(key: str, fields: Dict[str, type]) -> Validator:
    """Validator for an object whose present fields must have the given types."""

    def validate(doc: Any) -> List[str]:
        value = doc.get(key)
        if not isinstance(value, dict):
            return [f"expected an object, got {type(value).__name__}"]
        return [
            f"field '{field}' should be {expected.__name__}"
            for field, expected in fields.items()
            if field in value and not isinstance(value[field], expected)
        ]

    return validate


def _validate_banner(doc: Any) -> List[str]:
    problems = _string('Banner')(doc)
    if 'BannerLink' in doc and not isinstance(doc['BannerLink'], str):
        problems.append("BannerLink should be a string")
    if 'BannerRedirect' in doc and not isinstance(doc['BannerRedirect'], bool):
        problems.append("BannerRedirect should be true or false")
    return problems


def _validate_events(doc: Any) -> List[str]:
    problems = _list_of_records('events', ['name'])(doc)
    if problems:
        return problems
    for index, event in enumerate(doc['events']):
        dates = event.get('dates')
        if dates is not None and not isinstance(dates, dict):
            problems.append(f"item {index} dates should be an object with start/end")
        if 'deadlines' in event and not isinstance(event['deadlines'], list):
            problems.append(f"item {index} deadlines should be a list")
    return problems


def _is_competition_list(doc: Any) -> bool:
    return (
        isinstance(doc, list)
        and len(doc) > 0
        and isinstance(doc[0], dict)
        and bool(doc[0].get('name'))
        and bool(doc[0].get('description'))
    )


def _schema(name: str, title: str, key: str, validate: Validator) -> SectionSchema:
    return SectionSchema(name=name, title=title, detect=_has_key(key), validate=validate, key=key)


BUILTIN_SCHEMAS = (
    # site config / footer
    _schema('quick_links', 'Quick Links', 'QuickLinks', _list_of_records('QuickLinks', ['title', 'url'])),
    _schema('resources', 'Resources', 'Resources', _list_of_records('Resources', ['title', 'url'])),
    _schema('contact', 'Contact', 'Contact',
            _object('Contact', {'Name': str, 'Email': str, 'Phone': str, 'Address': list})),
    _schema('banner', 'Banner', 'Banner', _validate_banner),
    # about page
    _schema('mission_statement', 'Mission Statement', 'missionStatement', _string('missionStatement')),
    _schema('creed', 'Creed', 'creed', _list_of_strings('creed')),
    _schema('history', 'History', 'history',
            _object('history', {'founded': int, 'chartered': str, 'description': str})),
    _schema('state_officers', 'State Officers', 'stateOfficers',
            _list_of_records('stateOfficers', ['name', 'position'])),
    _schema('advisory_council', 'Advisory Council', 'advisoryCouncil',
            lambda doc: [] if isinstance(doc.get('advisoryCouncil'), (dict, list))
            else ["expected an object or a list"]),
    _schema('documents', 'Documents', 'documents', _list_of_records('documents', ['url'])),
    # competitions page is a bare list
    SectionSchema(
        name='competitions',
        title='Competitions',
        detect=_is_competition_list,
        validate=_list_of_records(None, ['name', 'description']),
    ),
    _schema('events', 'Events', 'events', _validate_events),
    # support-us page
    _schema('sponsorship_levels', 'Sponsorship Levels', 'sponsorshipLevels',
            _list_of_records('sponsorshipLevels', ['name'])),
    _schema('major_events', 'Major Events', 'majorEvents', _list_of_records('majorEvents', ['name'])),
    _schema('current_sponsors', 'Current Sponsors', 'currentSponsors',
            lambda doc: [] if isinstance(doc.get('currentSponsors'), (dict, list))
            else ["expected an object or a list"]),
    _schema('payment_address', 'Payment Address', 'paymentAddress',
            lambda doc: [] if isinstance(doc.get('paymentAddress'), (dict, str))
            else ["expected an object or a string"]),
)


def default_registry() -> SchemaRegistry:
    """Build a registry pre-populated with the built-in site sections."""
    registry = SchemaRegistry()
    for schema in BUILTIN_SCHEMAS:
        registry.register(schema)
    return registry
