"""Gemini collaborator: advisory chat, categorization and extraction.

Nothing here feeds back into the aggregation core except
``extract_transactions``, whose output goes through
``transaction_from_dict`` like any other external data.
"""

from __future__ import annotations

import base64
import json
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from . import config
from .exceptions import AdvisorError, ExtractionError, RetryableAdvisorError
from .logging_setup import get_logger
from .models import CATEGORIES, Category, Transaction, transaction_from_dict, transaction_to_dict
from .models import now_ms as current_time_ms
from .report import LocaleFormat, serialize_for_advisor
from .retry import retry_with_backoff

logger = get_logger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
DATA_URL_PATTERN = re.compile(r'^data:(.+);base64,(.+)$', re.DOTALL)

CHAT_FALLBACK = "Não consegui processar sua pergunta financeira no momento."
GENERAL_FALLBACK = "I couldn't generate a response."
HEALTH_FALLBACK = "Não foi possível gerar análise."
HEALTH_ERROR = "Erro ao analisar dados."
VISION_FALLBACK = "Could not analyze the image."

_CATEGORY_LIST = ', '.join(CATEGORIES)

ADVISOR_INSTRUCTION = """Você é um Consultor Financeiro Especialista.
O usuário fornecerá perguntas sobre finanças.
Você tem acesso aos dados financeiros atuais do usuário neste JSON: {context}.
{summary}
Diretrizes:
1. Responda de forma concisa e prática.
2. Use Markdown para formatar tabelas ou listas se necessário.
3. Se o usuário perguntar sobre gastos, calcule com base nos dados fornecidos.
4. Dê conselhos amigáveis e focados em economia e investimento.
5. Fale português do Brasil."""

CATEGORIZE_PROMPT = """Categorize a transação financeira descrita como: "{description}" (Valor: {amount}).
Retorne APENAS uma das seguintes categorias (exatamente como escrito):
{categories}.
Se não tiver certeza, retorne Outros."""

HEALTH_PROMPT = """Analise estes dados financeiros (JSON): {data}.
Forneça um resumo curto de 3 pontos com:
1. Um elogio sobre o comportamento financeiro.
2. Um ponto de atenção/alerta.
3. Uma dica prática para o próximo mês.
Use emojis e formatação Markdown."""

EXTRACTION_PROMPT = """Identifique se é RECEITA (INCOME) ou DESPESA (EXPENSE).
Identifique se é FIXO (FIXED) (ex: aluguel, netflix, salário) ou ESPORÁDICO (SPORADIC) (ex: uber, jantar).
Categorize entre: {categories}.

Retorne APENAS um JSON array válido. Exemplo:
[
  {{ "description": "McDonalds", "amount": 50.00, "type": "EXPENSE", "category": "Alimentação", "expenseType": "SPORADIC" }}
]
Se não encontrar nada, retorne []."""


def _to_history(history: Optional[Sequence[Dict[str, str]]]) -> List[types.Content]:
    """Convert ``[{'role': 'user'|'model', 'text': ...}]`` into SDK contents."""
    contents = []
    for message in history or []:
        role = 'model' if message.get('role') == 'model' else 'user'
        contents.append(types.Content(role=role, parts=[types.Part(text=str(message.get('text', '')))]))
    return contents


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    clean = text.replace('```json', '').replace('```', '')
    # trailing commas before a closing bracket are a common model slip
    clean = re.sub(r',\s*([\]}])', r'\1', clean)
    return clean.strip()


def parse_extraction_response(text: Optional[str]) -> List[Dict[str, Any]]:
    """Decode the model's JSON array; an object with ``transactions`` is accepted too."""
    data = json.loads(strip_code_fences(text or '[]') or '[]')
    if isinstance(data, dict):
        data = data.get('transactions', [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
    return [item for item in data if isinstance(item, dict)]


class GeminiAdvisor:
    """Thin wrapper over the google-genai client."""

    def __init__(
        self,
        client: Optional[Any] = None,
        model_name: Optional[str] = None,
        image_model_name: Optional[str] = None,
        locale: Optional[LocaleFormat] = None,
    ):
        self.client = client if client is not None else genai.Client(api_key=config.get_api_key())
        self.model_name = model_name or config.CHAT_MODEL
        self.image_model_name = image_model_name or config.IMAGE_MODEL
        self.locale = locale
        logger.info("Gemini advisor initialized with %s", self.model_name)

    # ------------------------------------------------------------------
    # SDK calls
    # ------------------------------------------------------------------

    @staticmethod
    def _wrap_error(exc: Exception, action: str) -> AdvisorError:
        if isinstance(exc, genai_errors.APIError) and getattr(exc, 'code', None) in RETRYABLE_STATUS:
            return RetryableAdvisorError(f"{action} failed (HTTP {exc.code}): {exc}")
        return AdvisorError(f"{action} failed: {exc}")

    @retry_with_backoff(max_retries=3)
    def _generate(self, contents: Any, model: Optional[str] = None, response_mime_type: Optional[str] = None):
        kwargs: Dict[str, Any] = {'model': model or self.model_name, 'contents': contents}
        if response_mime_type:
            kwargs['config'] = types.GenerateContentConfig(response_mime_type=response_mime_type)
        try:
            return self.client.models.generate_content(**kwargs)
        except Exception as exc:
            raise self._wrap_error(exc, "generate_content") from exc

    @retry_with_backoff(max_retries=3)
    def _send_chat(self, message: str, history: Optional[Sequence[Dict[str, str]]], instruction: str):
        try:
            chat = self.client.chats.create(
                model=self.model_name,
                history=_to_history(history),
                config=types.GenerateContentConfig(system_instruction=instruction),
            )
            return chat.send_message(message)
        except Exception as exc:
            raise self._wrap_error(exc, "chat") from exc

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def chat(
        self,
        message: str,
        history: Optional[Sequence[Dict[str, str]]],
        transactions: Iterable[Transaction],
        summary: Optional[str] = None,
    ) -> str:
        """Answer a finance question with the user's transactions as context."""
        instruction = ADVISOR_INSTRUCTION.format(
            context=serialize_for_advisor(transactions, self.locale),
            summary=f"Resumo do mês:\n{summary}\n" if summary else '',
        )
        try:
            response = self._send_chat(message, history, instruction)
        except AdvisorError as exc:
            logger.error("Chat Error: %s", exc)
            raise AdvisorError("Falha ao consultar o Gemini.") from exc
        return response.text or CHAT_FALLBACK

    def general_chat(self, message: str, history: Optional[Sequence[Dict[str, str]]] = None) -> str:
        response = self._send_chat(message, history, "You are a helpful AI assistant.")
        return response.text or GENERAL_FALLBACK

    def health_check(self, transactions: Iterable[Transaction]) -> str:
        """Three-point review of the user's finances, in Markdown."""
        data = json.dumps([transaction_to_dict(t) for t in transactions], ensure_ascii=False)
        try:
            response = self._generate(HEALTH_PROMPT.format(data=data))
        except AdvisorError as exc:
            logger.error("Health check error: %s", exc)
            return HEALTH_ERROR
        return response.text or HEALTH_FALLBACK

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def categorize(self, description: str, amount: float = 0.0) -> Category:
        """Ask for a single category; anything unexpected becomes ``Outros``."""
        if not description or not description.strip():
            return Category.OTHER
        prompt = CATEGORIZE_PROMPT.format(description=description, amount=amount, categories=_CATEGORY_LIST)
        try:
            response = self._generate(prompt)
        except AdvisorError as exc:
            logger.error("Auto Categorize Error: %s", exc)
            return Category.OTHER
        answer = (response.text or '').strip()
        if answer in CATEGORIES:
            return Category(answer)
        logger.info("Unrecognized category reply %r, using Outros", answer[:40])
        return Category.OTHER

    def extract_transactions(
        self,
        text: str = '',
        audio_base64: Optional[str] = None,
        now_ms: Optional[int] = None,
    ) -> List[Transaction]:
        """Turn free text (or a recorded WAV clip) into transactions.

        Returns an empty list when nothing was found.

        Raises:
            ExtractionError: If the call fails or the reply is not valid JSON
        """
        parts: List[types.Part] = []
        if audio_base64:
            try:
                audio = base64.b64decode(audio_base64)
            except ValueError as exc:
                raise ExtractionError(f"Invalid audio payload: {exc}") from exc
            parts.append(types.Part.from_bytes(data=audio, mime_type='audio/wav'))
            parts.append(types.Part(text="Analise o áudio e extraia as transações financeiras."))
        else:
            parts.append(types.Part(text=f'Analise este texto e extraia transações financeiras: "{text}"'))
        parts.append(types.Part(text=EXTRACTION_PROMPT.format(categories=_CATEGORY_LIST)))

        try:
            response = self._generate(parts, response_mime_type='application/json')
            items = parse_extraction_response(response.text)
        except (AdvisorError, ValueError) as exc:
            logger.error("NLP Transaction Error: %s", exc)
            raise ExtractionError("Falha ao interpretar o texto/áudio.") from exc

        # ids and dates are assigned here, never taken from the model
        stamp = now_ms if now_ms is not None else current_time_ms()
        transactions = [
            transaction_from_dict({k: v for k, v in item.items() if k not in ('id', 'date')}, now=stamp)
            for item in items
        ]
        logger.info("Extracted %d transaction(s)", len(transactions))
        return transactions

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def generate_image(self, prompt: str) -> Optional[str]:
        """Generate an image and return it as a ``data:`` URL."""
        response = self._generate(prompt, model=self.image_model_name)
        for candidate in response.candidates or []:
            content = getattr(candidate, 'content', None)
            for part in getattr(content, 'parts', None) or []:
                inline = getattr(part, 'inline_data', None)
                if inline is not None and inline.data:
                    data = inline.data
                    if isinstance(data, (bytes, bytearray)):
                        data = base64.b64encode(data).decode('ascii')
                    mime_type = inline.mime_type or 'image/png'
                    return f"data:{mime_type};base64,{data}"
        return None

    def analyze_image(self, image_url: str, prompt: str) -> str:
        """Describe a ``data:`` URL image according to ``prompt``."""
        match = DATA_URL_PATTERN.match(image_url or '')
        if not match:
            raise AdvisorError("Invalid image format")
        mime_type, encoded = match.group(1), match.group(2)
        try:
            image = base64.b64decode(encoded)
        except ValueError as exc:
            raise AdvisorError(f"Invalid image payload: {exc}") from exc
        response = self._generate([
            types.Part.from_bytes(data=image, mime_type=mime_type),
            types.Part(text=prompt),
        ])
        return response.text or VISION_FALLBACK
