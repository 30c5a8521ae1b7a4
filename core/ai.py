"""
Thin client for the hosted language model used by image verification and
habit suggestions.

Callers decide how to degrade; this module only raises AIServiceError.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

API_VERSION = '2023-06-01'


class AIServiceError(Exception):
    pass


def call_model(
    content: List[Dict[str, Any]],
    *,
    system: Optional[str] = None,
    temperature: float = 0.3,
    max_tokens: int = 600,
) -> str:
    """
    Send one user turn to the model and return its text reply.

    Args:
        content: Message content blocks (text and/or image blocks)
        system: Optional system prompt
        temperature: Lower = more deterministic
        max_tokens: Max output tokens

    Raises:
        AIServiceError: missing API key, transport failure, non-200
            response, or a reply without text.
    """
    if not settings.ANTHROPIC_API_KEY:
        raise AIServiceError('AI provider is not configured (ANTHROPIC_API_KEY missing)')

    headers = {
        'Content-Type': 'application/json',
        'x-api-key': settings.ANTHROPIC_API_KEY,
        'anthropic-version': API_VERSION,
    }
    payload = {
        'model': settings.AI_MODEL_ID,
        'max_tokens': max_tokens,
        'temperature': temperature,
        'messages': [{'role': 'user', 'content': content}],
    }
    if system:
        payload['system'] = system

    try:
        resp = requests.post(settings.AI_API_URL, json=payload, headers=headers, timeout=settings.AI_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise AIServiceError(f'AI request failed: {e}') from e

    if resp.status_code != 200:
        raise AIServiceError(f'AI provider returned HTTP {resp.status_code}: {resp.text[:200]}')

    try:
        blocks = resp.json().get('content', [])
        text = ''.join(b.get('text', '') for b in blocks if b.get('type') == 'text').strip()
    except (ValueError, AttributeError) as e:
        raise AIServiceError(f'Unreadable AI response: {e}') from e

    if not text:
        raise AIServiceError('AI response contained no text')
    return text


def extract_json(text: str) -> Dict[str, Any]:
    """Pull a JSON object out of a reply that may wrap it in a ```json fence."""
    if '```' in text:
        fenced = text.split('```')[1]
        if fenced.startswith('json'):
            fenced = fenced[len('json'):]
        text = fenced.strip()
    elif '{' in text:
        start = text.find('{')
        end = text.rfind('}') + 1
        text = text[start:end]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AIServiceError(f'AI response was not valid JSON: {e}') from e
    if not isinstance(data, dict):
        raise AIServiceError('AI response JSON was not an object')
    return data
