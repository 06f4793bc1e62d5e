"""
trademate.extraction.vision
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Receipt photo → ``ExpenseDraft`` via a vision model served by Ollama.

Input:  image bytes (or a path) in any format Pillow can open
Output: ``ExpenseDraft`` on success; ``BadImageError`` when the photo is
        unreadable; ``ExtractionFailedError`` for everything else

The model call is the only place in trademate that retries, bounded by
``Config.max_retries``.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Sequence, Union

import requests
from PIL import Image, UnidentifiedImageError

from ..config import Config
from ..exceptions import (
    BadImageError,
    ExtractionError,
    ExtractionFailedError,
    ValidationFailedError,
)
from ..models import ExpenseDraft, KnownCategory, OtherCategory, ScanResult, ScanStatus
from ..prompts import BAD_IMAGE_TAG, EXPECTED_KEYS, build_extraction_prompt
from ..utils import ZERO, clean_json_response, parse_money, parse_spend_date

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

ImageSource = Union[bytes, str, Path]


# ---------------------------------------------------------------------------
# Image preparation
# ---------------------------------------------------------------------------

def _read_source(source: ImageSource) -> bytes:
    if isinstance(source, bytes):
        return source
    try:
        return Path(source).read_bytes()
    except (OSError, ValueError) as exc:
        raise ExtractionFailedError(f"Cannot read {source!r}", cause=exc) from exc


def _source_name(index: int, source: ImageSource) -> str:
    return f"image-{index + 1}" if isinstance(source, bytes) else str(source)


def _image_to_png_base64(data: bytes) -> str:
    """
    Verify ``data`` is a decodable raster image and re-encode it as PNG.

    Raises:
        BadImageError: Empty, truncated or non-image input.
    """
    if not data:
        raise BadImageError("Empty image.")
    try:
        with Image.open(io.BytesIO(data)) as check:
            check.verify()
        # verify() leaves the image unusable, so decode again
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError,
            Image.DecompressionBombError) as exc:
        raise BadImageError("We couldn't read that receipt. Please retake the photo.",
                            cause=exc) from exc
    return base64.b64encode(buf.getvalue()).decode("ascii")


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------

def _coerce_category(value) -> KnownCategory | OtherCategory:
    text = "" if value is None else str(value)
    if not text.strip():
        return KnownCategory.MISCELLANEOUS
    try:
        return KnownCategory(text.strip().lower())
    except ValueError:
        return OtherCategory(text)


def draft_from_response(parsed: dict) -> ExpenseDraft:
    """
    Map the model's JSON object onto an ``ExpenseDraft``.

    Every field is best-effort: an unparsable amount becomes zero and an
    unparsable date becomes ``None``, leaving the user to fix the draft.

    Raises:
        BadImageError: The model answered ``{"error": "bad_image"}``.
        ExtractionFailedError: The object carries none of the expected
            fields, or reports any other error.
    """
    error = parsed.get("error")
    if error == BAD_IMAGE_TAG:
        raise BadImageError("We couldn't read that receipt. Please retake the photo.")
    if error:
        raise ExtractionFailedError(f"Vision model reported an error: {error}")
    if not any(parsed.get(k) not in (None, "") for k in EXPECTED_KEYS if k != "error"):
        raise ExtractionFailedError("Vision model returned no receipt fields.")

    amount = parse_money(parsed.get("amount"))
    vat = parse_money(parsed.get("vat_amount"))
    return ExpenseDraft(
        vendor=str(parsed.get("vendor") or "").strip(),
        amount=amount if amount is not None and amount >= 0 else ZERO,
        vat_amount=vat if vat is not None and vat >= 0 else ZERO,
        category=_coerce_category(parsed.get("category")),
        spend_date=parse_spend_date(parsed.get("date")),
    )


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class ReceiptExtractor:
    """
    Client for the vision model.

    Args:
        config: Optional Config instance (reads .env by default).
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.model_cfg = self.config.get_vision_config()
        self.prompt = build_extraction_prompt()

    # ------------------------------------------------------------------
    # Model call
    # ------------------------------------------------------------------

    def _generate(self, png_b64: str) -> str:
        """POST to ``/api/generate``; return the raw ``response`` text."""
        mc = self.model_cfg
        last_error: Optional[BaseException] = None

        for attempt in range(1, mc.max_retries + 1):
            try:
                resp = requests.post(
                    f"{mc.base_url}/api/generate",
                    json={
                        "model":  mc.model,
                        "prompt": self.prompt,
                        "images": [png_b64],
                        "format": "json",
                        "stream": False,
                        "options": {
                            "temperature": mc.temperature,
                            "top_p":       mc.top_p,
                            "num_ctx":     mc.num_ctx,
                        },
                    },
                    timeout=mc.timeout,
                )
                if resp.status_code == 200:
                    try:
                        body = resp.json()
                    except ValueError as exc:
                        raise ExtractionFailedError(
                            "Vision model returned a non-JSON body.", cause=exc
                        ) from exc
                    if not isinstance(body, dict):
                        raise ExtractionFailedError("Vision model returned an unexpected body.")
                    answer = body.get("response")
                    if answer is None:
                        return ""
                    if not isinstance(answer, str):
                        raise ExtractionFailedError("Vision model answer is not text.")
                    return answer
                logger.warning(
                    "Vision model HTTP %s (attempt %d/%d)",
                    resp.status_code, attempt, mc.max_retries,
                )
                last_error = None
            except requests.exceptions.RequestException as exc:
                logger.warning(
                    "Vision model request failed (attempt %d/%d): %s",
                    attempt, mc.max_retries, exc,
                )
                last_error = exc
            if attempt < mc.max_retries:
                time.sleep(1)

        raise ExtractionFailedError(
            f"Vision model unavailable after {mc.max_retries} attempts.",
            cause=last_error,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, image: ImageSource) -> ExpenseDraft:
        """
        Extract an editable draft from one receipt photo.

        Raises:
            BadImageError: The photo is unreadable (locally or per the model).
            ExtractionFailedError: Transport, HTTP or parsing failure.
        """
        png_b64 = _image_to_png_base64(_read_source(image))
        raw = self._generate(png_b64)
        if not raw.strip():
            raise ExtractionFailedError("Vision model returned an empty answer.")

        try:
            parsed = json.loads(clean_json_response(raw))
        except json.JSONDecodeError as exc:
            raise ExtractionFailedError("Vision model answer is not JSON.", cause=exc) from exc
        if not isinstance(parsed, dict) or not parsed:
            raise ExtractionFailedError("Vision model answer is not a JSON object.")

        return draft_from_response(parsed)

    def _scan_one(self, index: int, image: ImageSource) -> ScanResult:
        source = _source_name(index, image)
        start = time.monotonic()
        try:
            draft = self.extract(image)
        except ExtractionError as exc:
            logger.info("Scan %s failed: %s", source, exc)
            return ScanResult(
                index=index,
                source=source,
                status=ScanStatus.FAILED,
                error_tag=exc.tag,
                error_message=exc.message,
                processing_time=time.monotonic() - start,
            )
        except Exception as exc:
            logger.exception("Scan %s failed unexpectedly", source)
            return ScanResult(
                index=index,
                source=source,
                status=ScanStatus.FAILED,
                error_tag=ExtractionFailedError.tag,
                error_message=f"Failed to process image: {exc}",
                processing_time=time.monotonic() - start,
            )
        return ScanResult(
            index=index,
            source=source,
            status=ScanStatus.RESOLVED,
            draft=draft,
            processing_time=time.monotonic() - start,
        )

    def extract_batch(self, images: Sequence[ImageSource]) -> list[ScanResult]:
        """
        Extract several photos concurrently.

        Each item resolves or fails on its own; a failure never aborts its
        siblings. Results come back in submission order.

        Raises:
            ValidationFailedError: More images than ``Config.max_batch_size``.
        """
        if len(images) > self.config.max_batch_size:
            raise ValidationFailedError(
                f"At most {self.config.max_batch_size} receipts can be scanned at once."
            )

        results = [
            ScanResult(index=i, source=_source_name(i, img))
            for i, img in enumerate(images)
        ]
        if not images:
            return results

        with ThreadPoolExecutor(max_workers=self.config.extraction_workers) as pool:
            futures = {pool.submit(self._scan_one, i, img): i for i, img in enumerate(images)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results
