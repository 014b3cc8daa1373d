"""
AI Agents for Card Ledger

Gemini (google-generativeai) provides two kinds of help:

1. ADVISOR AGENT:
   - CAN: Summarize balances and recent spending, suggest one saving tip
   - CANNOT: Change any data

2. RECEIPT AGENT:
   - CAN: Propose amount, description and category from a receipt photo
   - CAN: Describe an arbitrary image
   - CANNOT: Save anything. Extracted data only prefills a form.

CRITICAL: Every call absorbs its own failures. A broken network or a
malformed response yields a fallback value, never an exception.
"""

import json
from typing import Any, Optional, Sequence

import google.generativeai as genai
import structlog

from cardledger.config import get_settings
from cardledger.constants import LANGUAGE_NAMES, format_amount
from cardledger.derivations.balance import describe_card
from cardledger.models.finance import (
    CardWithBalance,
    ReceiptInfo,
    Transaction,
    TransactionCategory,
)

logger = structlog.get_logger()

FALLBACK_TEXTS = {
    "es": {
        "advice_empty": "No se pudo generar un análisis en este momento.",
        "advice_error": "Lo siento, hubo un error al conectar con el asistente financiero.",
        "image_empty": "No se pudo generar una descripción para la imagen.",
        "image_error": "Ocurrió un error al analizar la imagen.",
        "receipt_description": "Compra escaneada",
    },
    "en": {
        "advice_empty": "Could not generate an analysis right now.",
        "advice_error": "Sorry, there was an error reaching the financial assistant.",
        "image_empty": "Could not generate a description for the image.",
        "image_error": "An error occurred while analyzing the image.",
        "receipt_description": "Scanned purchase",
    },
}

RECEIPT_CATEGORIES = [
    TransactionCategory.FOOD,
    TransactionCategory.TRANSPORT,
    TransactionCategory.ENTERTAINMENT,
    TransactionCategory.BILLS,
    TransactionCategory.SHOPPING,
    TransactionCategory.HEALTH,
    TransactionCategory.OTHERS,
]


def fallback_text(key: str, language: str) -> str:
    return FALLBACK_TEXTS.get(language, FALLBACK_TEXTS["en"])[key]


def extract_json_object(text: str) -> dict:
    """
    Parse the first {...} block of a model response.

    Models sometimes wrap JSON in markdown fences or prose.

    Raises:
        ValueError: If no object can be parsed
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ValueError("No JSON object in response")
    data = json.loads(text[start:end])
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


def normalize_category(value: Any) -> str:
    """Map a suggested category onto the known set, defaulting to 'others'."""
    text = str(value or "").strip().lower()
    known = {c.value for c in TransactionCategory}
    return text if text in known else TransactionCategory.OTHERS.value


def _image_part(image_bytes: bytes) -> dict:
    return {"mime_type": "image/jpeg", "data": image_bytes}


def _build_model(model_name: str, generation_config: dict) -> Any:
    """Configure Google Generative AI and return a model handle."""
    settings = get_settings().gemini
    genai.configure(api_key=settings.api_key)
    return genai.GenerativeModel(
        model_name=model_name,
        generation_config=generation_config,
    )


class AdvisorAgent:
    """
    Short financial summary from balances and recent transactions.

    The model only sees the most recent transactions (window from
    settings, 20 by default).
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        language: Optional[str] = None,
        transaction_window: Optional[int] = None,
        currency: str = "CLP",
    ):
        app = get_settings().app
        self._language = language or app.language
        self._window = transaction_window or app.advice_transaction_window
        self._currency = currency
        if model is None:
            gemini = get_settings().gemini
            model = _build_model(
                gemini.advice_model_name,
                {
                    "temperature": gemini.temperature,
                    "max_output_tokens": gemini.max_tokens,
                },
            )
        self._model = model

    def build_prompt(
        self,
        total_balance: int,
        cards: Sequence[CardWithBalance],
        transactions: Sequence[Transaction],
    ) -> str:
        recent = sorted(transactions, key=lambda t: t.date, reverse=True)[:self._window]

        card_summary = ", ".join(
            f"{c.name} ({c.type.value}): {format_amount(c.current_balance, self._currency)}"
            for c in cards
        )
        tx_summary = "\n".join(
            f"- {t.date.date().isoformat()}: {t.description} ({t.type.value}) "
            f"{format_amount(t.amount, self._currency)} on {describe_card(t.card_id, cards)}"
            for t in recent
        )

        return f"""Act as an expert personal financial advisor.

Current data:
- Total balance: {format_amount(total_balance, self._currency)}
- Cards: {card_summary or "none"}
- Latest transactions:
{tx_summary or "none"}

Give a very short summary (at most 3 paragraphs) of my current financial state.
Identify spending patterns and give 1 actionable saving tip.
Answer in simple Markdown, using emojis to keep it friendly.
Answer in {LANGUAGE_NAMES.get(self._language, "English")}."""

    async def get_financial_advice(
        self,
        total_balance: int,
        cards: Sequence[CardWithBalance],
        transactions: Sequence[Transaction],
    ) -> str:
        """Advice text, or a fallback message when the service fails."""
        prompt = self.build_prompt(total_balance, cards, transactions)
        try:
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("advice_failed", error=str(e))
            return fallback_text("advice_error", self._language)

        return text or fallback_text("advice_empty", self._language)


class ReceiptAgent:
    """
    Vision helpers for receipt scanning.

    BOUNDARIES:
    - NEVER persists data
    - Returns None when a receipt cannot be read, so the caller falls
      back to manual entry
    """

    def __init__(
        self,
        extraction_model: Optional[Any] = None,
        vision_model: Optional[Any] = None,
        language: Optional[str] = None,
    ):
        self._language = language or get_settings().app.language
        if extraction_model is None or vision_model is None:
            gemini = get_settings().gemini
            extraction_model = extraction_model or _build_model(
                gemini.advice_model_name,
                {
                    "temperature": 0.1,  # Low temperature for consistency
                    "max_output_tokens": 512,
                    "response_mime_type": "application/json",
                },
            )
            vision_model = vision_model or _build_model(
                gemini.vision_model_name,
                {
                    "temperature": gemini.temperature,
                    "max_output_tokens": gemini.max_tokens,
                },
            )
        self._extraction_model = extraction_model
        self._vision_model = vision_model

    async def extract_receipt_info(self, image_bytes: bytes) -> Optional[ReceiptInfo]:
        """
        Propose amount, description and category for a receipt photo.

        Returns None on any failure.
        """
        categories = ", ".join(c.value for c in RECEIPT_CATEGORIES)
        prompt = (
            "Analyze this receipt and extract, as JSON: the total amount "
            "(integer) as \"amount\", a short description of the merchant or "
            "purchase as \"description\", and a suggested category as "
            f"\"category\" (one of: {categories}). "
            f"Write the description in {LANGUAGE_NAMES.get(self._language, 'English')}. "
            "Respond with ONLY the JSON object."
        )

        try:
            response = await self._extraction_model.generate_content_async(
                [_image_part(image_bytes), prompt]
            )
            data = extract_json_object(response.text or "")
            return ReceiptInfo(
                amount=round(float(data.get("amount") or 0)),
                description=(
                    str(data.get("description") or "").strip()
                    or fallback_text("receipt_description", self._language)
                ),
                category=normalize_category(data.get("category")),
            )
        except Exception as e:
            logger.warning("receipt_extraction_failed", error=str(e))
            return None

    async def analyze_image(self, image_bytes: bytes) -> str:
        """Free-form description of an image, or a fallback message."""
        prompt = (
            "Analyze this image in detail. Describe what you see, identify "
            "objects, relevant text and any useful context. Answer clearly "
            f"and in an organized way, in {LANGUAGE_NAMES.get(self._language, 'English')}."
        )
        try:
            response = await self._vision_model.generate_content_async(
                [_image_part(image_bytes), prompt]
            )
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("image_analysis_failed", error=str(e))
            return fallback_text("image_error", self._language)

        return text or fallback_text("image_empty", self._language)
