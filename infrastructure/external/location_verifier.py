# ================================
# infrastructure/external/location_verifier.py
# ================================
import logging
from abc import ABC, abstractmethod
from typing import Optional

from core.models import LocationVerdict
from shared.decorators.error_handling import handle_network_errors
from shared.utils.validation import ResponseParseError, extract_json_object
from .vision_client import VisionModelClient

logger = logging.getLogger(__name__)

UNREACHABLE_VERDICT = LocationVerdict(verified=False, summary="Could not verify location connectivity.")
UNPARSEABLE_VERDICT = LocationVerdict(verified=False, summary="Verification result parsing failed.")

VERIFY_PROMPT = (
    'Verify if the location "{location}" logically exists near the coordinates '
    "Latitude: {lat}, Longitude: {lng}.\n"
    "Use Google Maps data to check nearby landmarks.\n"
    'Return a valid JSON string object with "verified" (boolean) and "summary" (string).'
)


class LocationVerifier(ABC):
    """Checks that a camera's location label matches its coordinates. Never raises."""

    @abstractmethod
    async def verify(self, location: str, lat: float, lng: float) -> LocationVerdict:
        pass


class GeminiLocationVerifier(LocationVerifier):
    """
    Asks the vision model, grounded with the maps tool, whether the label fits
    the coordinates.

    The maps tool does not allow a JSON response type, so the reply is parsed
    out of free text.
    """

    MAPS_TOOL = {"googleMaps": {}}

    def __init__(self, client: VisionModelClient, model: Optional[str] = None):
        self.client = client
        self.model = model

    @handle_network_errors(default_return=UNREACHABLE_VERDICT)
    async def verify(self, location: str, lat: float, lng: float) -> LocationVerdict:
        prompt = VERIFY_PROMPT.format(location=location, lat=lat, lng=lng)
        text = await self.client.generate(prompt, structured=False, model=self.model, tools=[self.MAPS_TOOL])

        try:
            payload = extract_json_object(text)
        except ResponseParseError as e:
            logger.warning(f"⚠️ Location verification reply not parseable for '{location}': {e}")
            return UNPARSEABLE_VERDICT

        verdict = LocationVerdict.from_payload(payload)
        logger.info(f"📍 Location '{location}' verified={verdict.verified}")
        return verdict
