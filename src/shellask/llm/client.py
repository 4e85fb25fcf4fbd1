"""Thin chat-completion client that sends the whole conversation each call."""

from __future__ import annotations

import http.client
import json
import logging
from urllib import request
from urllib.error import HTTPError, URLError

from shellask.agent.models import CompletionReply, Conversation
from shellask.config import DEFAULT_API_URL

LOGGER = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Raised when a completion cannot be obtained from the remote endpoint."""


class ChatClient:
    """Small HTTP client for chat-completion calls.

    Each call is a single blocking POST. Failures are never retried: any
    network, HTTP or parse problem raises :class:`TransportError`.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        api_url: str = DEFAULT_API_URL,
        proxy: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self.proxy = proxy
        self.timeout = timeout

    def complete(self, conversation: Conversation) -> CompletionReply:
        payload = self._build_payload(conversation)
        body = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        LOGGER.debug(
            "llm_request_prepared",
            extra={
                "api_url": self.api_url,
                "model": self.model,
                "payload_bytes": len(body),
                "messages": len(conversation),
                "proxy": bool(self.proxy),
            },
        )

        try:
            req = request.Request(self.api_url, data=body, headers=headers, method="POST")
            opener = self._build_opener()
            with opener.open(req, timeout=self.timeout) as resp:
                raw_response = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            body_excerpt = self._read_error_body_excerpt(exc)
            LOGGER.error(
                "llm_request_http_error",
                extra={
                    "api_url": self.api_url,
                    "model": self.model,
                    "http_status": exc.code,
                    "reason": exc.reason,
                    "response_excerpt": body_excerpt,
                },
            )
            details = f"HTTP {exc.code}: {exc.reason}"
            if body_excerpt:
                details = f"{details}. Response body: {body_excerpt}"
            raise TransportError(details) from exc
        except URLError as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": self.api_url, "reason": str(exc.reason)},
            )
            msg = f"transport error: {exc.reason}"
            raise TransportError(msg) from exc
        except TimeoutError as exc:
            LOGGER.error(
                "llm_request_timeout",
                extra={"api_url": self.api_url, "timeout_seconds": self.timeout},
            )
            msg = f"request timed out after {self.timeout}s"
            raise TransportError(msg) from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.error("llm_response_parse_error", extra={"error": str(exc)})
            msg = f"response parsing error: {exc}"
            raise TransportError(msg) from exc
        except (OSError, http.client.HTTPException, ValueError) as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": self.api_url, "reason": str(exc)},
            )
            msg = f"transport error: {exc or exc.__class__.__name__}"
            raise TransportError(msg) from exc

        reply = self._to_completion_reply(raw_response)
        LOGGER.debug(
            "llm_response_received",
            extra={
                "response_id": reply.id,
                "finish_reason": reply.finish_reason,
                "usage": reply.usage,
            },
        )
        return reply

    def _build_payload(self, conversation: Conversation) -> dict[str, object]:
        return {"model": self.model, "messages": conversation.to_payload()}

    def _build_opener(self) -> request.OpenerDirector:
        if not self.proxy:
            return request.build_opener()
        return request.build_opener(
            request.ProxyHandler({"http": self.proxy, "https": self.proxy})
        )

    @staticmethod
    def _coerce_object_dict(value: object) -> dict[str, object] | None:
        if not isinstance(value, dict):
            return None
        return {str(key): raw_value for key, raw_value in value.items()}

    @classmethod
    def _to_completion_reply(cls, raw_response: object) -> CompletionReply:
        raw = cls._coerce_object_dict(raw_response)
        if raw is None:
            raise TransportError("response parsing error: expected top-level object")

        choices = raw.get("choices")
        if not isinstance(choices, list) or not choices:
            error = cls._coerce_object_dict(raw.get("error"))
            if error and isinstance(error.get("message"), str):
                msg = f"no choices returned: {error['message']}"
            else:
                msg = "no choices returned, retry later"
            raise TransportError(msg)

        first = cls._coerce_object_dict(choices[0])
        message = cls._coerce_object_dict(first.get("message")) if first else None
        content = message.get("content") if message else None
        if not isinstance(content, str):
            raise TransportError("response parsing error: first choice has no message content")

        finish_reason = first.get("finish_reason") if first else None
        response_id = raw.get("id")
        model = raw.get("model")
        usage = cls._coerce_object_dict(raw.get("usage")) or {}
        return CompletionReply(
            content=content,
            id=response_id if isinstance(response_id, str) else None,
            model=model if isinstance(model, str) else None,
            finish_reason=finish_reason if isinstance(finish_reason, str) else None,
            usage={key: value for key, value in usage.items() if isinstance(value, int)},
        )

    @staticmethod
    def _read_error_body_excerpt(exc: HTTPError, *, max_chars: int = 500) -> str | None:
        if exc.fp is None:
            return None
        try:
            raw = exc.read()
        except OSError:
            return None

        if not raw:
            return None

        excerpt = raw.decode("utf-8", errors="replace").replace("\n", " ").strip()
        if len(excerpt) > max_chars:
            return f"{excerpt[:max_chars]}..."
        return excerpt
