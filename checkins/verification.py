"""
Image verification: asks the vision model whether a photo satisfies a
habit's verification prompt.
"""
from dataclasses import dataclass
import logging

from core.ai import call_model

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = 'Respond with ONLY "YES" or "NO" on the first line, followed by a brief 1-2 sentence explanation.'


@dataclass(frozen=True)
class VerificationResult:
    is_verified: bool
    note: str


def build_prompt(verification_prompt: str) -> str:
    return f"{verification_prompt}\n\n{RESPONSE_FORMAT}"


def parse_verdict(reply: str) -> VerificationResult:
    lines = reply.strip().split('\n')
    verdict = lines[0].strip().upper()
    explanation = ' '.join(line.strip() for line in lines[1:]).strip() or 'No explanation provided.'
    return VerificationResult(is_verified='YES' in verdict, note=explanation)


def verify_image(image_url: str, verification_prompt: str) -> VerificationResult:
    """
    Judge the image at ``image_url`` against ``verification_prompt``.

    Never raises: any failure becomes a rejection whose note names the error.
    """
    logger.info(f"Verifying {image_url}")
    try:
        reply = call_model(
            [
                {'type': 'image', 'source': {'type': 'url', 'url': image_url}},
                {'type': 'text', 'text': build_prompt(verification_prompt)},
            ],
            max_tokens=300,
        )
        result = parse_verdict(reply)
    except Exception as e:
        logger.error(f"Error verifying image: {e}", exc_info=True)
        return VerificationResult(is_verified=False, note=f'Verification service error: {e}')

    logger.info(f"Verification complete: {'VERIFIED' if result.is_verified else 'REJECTED'}")
    return result
