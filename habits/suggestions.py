"""
AI-assisted verification suggestions for custom habits.

suggest_verification() asks the language model first. Whenever that fails
(not configured, transport error, unparseable or off-schema reply) it
falls back to fixed tables, which always produce a valid suggestion.
"""
import copy
import logging
from typing import Any, Dict, Optional

import jsonschema

from core.ai import AIServiceError, call_model, extract_json

from .models import Category, VerificationType

logger = logging.getLogger(__name__)

SUGGESTION_SCHEMA = {
    'type': 'object',
    'properties': {
        'verificationType': {'type': 'string', 'enum': list(VerificationType.values)},
        'verificationPrompt': {'type': 'string', 'minLength': 1},
        'reasoning': {'type': 'string'},
        'alternatives': {
            'type': 'array',
            'items': {
                'type': 'object',
                'properties': {
                    'type': {'type': 'string', 'enum': list(VerificationType.values)},
                    'description': {'type': 'string'},
                },
                'required': ['type', 'description'],
            },
        },
    },
    'required': ['verificationType', 'verificationPrompt'],
}

SYSTEM_PROMPT = """You are a habit tracking expert. Given a habit name and description, suggest the best way to verify completion.

Verification options:
1. PHOTO: User takes a photo as proof (best for visual activities)
2. MANUAL: User manually confirms completion (best for private/mental activities)
3. TIMER: User starts/completes a timer (best for time-based activities)
4. LOCATION: GPS verification (best for location-specific activities)

Respond in valid JSON format:
{
  "verificationType": "photo|manual|timer|location",
  "verificationPrompt": "Detailed prompt for AI image verification (if photo) or clear instructions (if other type)",
  "reasoning": "1-2 sentences explaining why this method is best for this specific habit",
  "alternatives": [
    {"type": "manual|timer|location", "description": "Brief description of alternative method"}
  ]
}

IMPORTANT:
- For photo verification, write the verificationPrompt as a question starting with "Does this image show..."
- Make prompts specific to the habit
- Keep reasoning concise and helpful"""


def _suggestion(verification_type, prompt, reasoning, alternatives):
    return {
        'verificationType': verification_type,
        'verificationPrompt': prompt,
        'reasoning': reasoning,
        'alternatives': [{'type': t, 'description': d} for t, d in alternatives],
    }


CATEGORY_TEMPLATES = {
    Category.HEALTH: (
        VerificationType.PHOTO,
        'Does this image show evidence of completing the health habit "{name}"? Valid evidence includes the food, drink, supplement or activity involved.',
        'Health habits usually leave something visible to photograph.',
        [(VerificationType.MANUAL, 'Manually confirm you completed this habit')],
    ),
    Category.FITNESS: (
        VerificationType.PHOTO,
        'Does this image show evidence of doing "{name}"? Valid evidence includes workout equipment, exercise clothing, a fitness tracker or active exercise.',
        'Photo proof of the workout provides clear verification of completion.',
        [(VerificationType.LOCATION, "Use GPS to verify you're at the workout location")],
    ),
    Category.LEARNING: (
        VerificationType.PHOTO,
        'Does this image show someone engaged in "{name}"? Valid evidence includes books, course material, an instrument or a study setup.',
        'Learning sessions usually involve material that is easy to photograph.',
        [(VerificationType.TIMER, 'Use a timer to track the study session')],
    ),
    Category.WELLNESS: (
        VerificationType.TIMER,
        'Complete a "{name}" session using the timer',
        'Wellness practices are often private and time-based, so a timer fits best.',
        [(VerificationType.MANUAL, 'Manually confirm completion')],
    ),
    Category.PRODUCTIVITY: (
        VerificationType.PHOTO,
        'Does this image show the result of "{name}"? Valid evidence includes a finished task list, an organized workspace or completed work.',
        'Productivity habits produce visible output that can be photographed.',
        [(VerificationType.MANUAL, 'Manually confirm you completed this habit')],
    ),
    Category.LIFESTYLE: (
        VerificationType.PHOTO,
        'Does this image show evidence of completing "{name}"? The result of the activity should be clearly visible.',
        'Photo verification works well for everyday routines with a visible result.',
        [(VerificationType.MANUAL, 'Manually confirm you completed this habit')],
    ),
}

KEYWORD_RULES = [
    (
        ('read', 'book'),
        _suggestion(
            VerificationType.PHOTO,
            'Does this image show someone reading a book or engaged with reading material?',
            'Photo verification works well for reading habits as books are easily photographed.',
            [(VerificationType.MANUAL, 'Manually confirm you completed your reading session')],
        ),
    ),
    (
        ('meditat', 'mindful'),
        _suggestion(
            VerificationType.TIMER,
            'Complete a meditation session using the timer',
            "Meditation is best tracked with a timer as it's time-based and private.",
            [(VerificationType.MANUAL, 'Manually confirm completion')],
        ),
    ),
    (
        ('gym', 'workout', 'exercise'),
        _suggestion(
            VerificationType.PHOTO,
            'Does this image show evidence of being at a gym or doing a workout?',
            'Photo proof from the gym provides clear verification of workout completion.',
            [(VerificationType.LOCATION, "Use GPS to verify you're at the gym")],
        ),
    ),
]


def category_suggestion(name: str, category: Optional[str]) -> Optional[Dict[str, Any]]:
    template = CATEGORY_TEMPLATES.get(category)
    if template is None:
        return None
    verification_type, prompt, reasoning, alternatives = template
    return _suggestion(verification_type, prompt.format(name=name), reasoning, alternatives)


def keyword_suggestion(name: str) -> Optional[Dict[str, Any]]:
    lowered = name.lower()
    for keywords, suggestion in KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return copy.deepcopy(suggestion)
    return None


def generic_suggestion(name: str, description: str) -> Dict[str, Any]:
    return _suggestion(
        VerificationType.PHOTO,
        f'Does this image show evidence of completing: {name}? The image should demonstrate '
        f'that the activity described as "{description}" has been completed.',
        'Photo verification provides visual proof of habit completion and works for most activities.',
        [
            (VerificationType.MANUAL, 'Manually confirm you completed this habit'),
            (VerificationType.TIMER, 'Use a timer if this is a time-based activity'),
        ],
    )


def fallback_suggestion(name: str, description: str, category: Optional[str] = None) -> Dict[str, Any]:
    """Category template first, then name keywords, then a generic photo prompt."""
    return (
        category_suggestion(name, category)
        or keyword_suggestion(name)
        or generic_suggestion(name, description)
    )


def _ask_model(name: str, description: str) -> Dict[str, Any]:
    reply = call_model(
        [{'type': 'text', 'text': f'Habit Name: {name}\nDescription: {description}\n\nSuggest the best verification method for this habit.'}],
        system=SYSTEM_PROMPT,
        temperature=0.7,
    )
    data = extract_json(reply)
    jsonschema.validate(instance=data, schema=SUGGESTION_SCHEMA)
    return {
        'verificationType': data['verificationType'],
        'verificationPrompt': data['verificationPrompt'],
        'reasoning': data.get('reasoning', ''),
        'alternatives': data.get('alternatives', []),
    }


def suggest_verification(name: str, description: str, category: Optional[str] = None) -> Dict[str, Any]:
    """Suggest a verification method; never raises."""
    try:
        suggestion = _ask_model(name, description)
        logger.info(f"AI verification suggestion for '{name}': {suggestion['verificationType']}")
        return suggestion
    except AIServiceError as e:
        logger.warning(f"AI suggestion unavailable for '{name}', using fallback: {e}")
    except jsonschema.ValidationError as e:
        logger.warning(f"AI suggestion for '{name}' failed validation, using fallback: {e.message}")
    except Exception as e:
        logger.error(f"Unexpected error suggesting verification for '{name}': {e}", exc_info=True)
    return fallback_suggestion(name, description, category)
