"""Tokenizer access for the session controller.

``FastTokenizer`` implements ``BaseTokenizer`` on top of ``tokenizers`` with a
``transformers`` fallback when no local tokenizer.json is available.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock

# Disable tokenizers parallelism before importing tokenizers (prevents fork warnings)
os.environ["TOKENIZERS_PARALLELISM"] = "false"

from tokenizers import Tokenizer

from ..errors import ModelResourceError
from .base import BaseTokenizer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenizerSource:
    original_path: str
    is_local: bool
    tokenizer_json_path: str | None
    sentinel_token: str | None


class FastTokenizer(BaseTokenizer):
    def __init__(
        self,
        path_or_repo: str,
        *,
        load_transformers: bool = True,
        sentinel_id: int | None = None,
    ):
        """Create a tokenizer for a local model directory or Hugging Face repo.

        Args:
            path_or_repo: Local directory or Hugging Face repo id.
            load_transformers: Whether to load a transformers tokenizer when no
                local tokenizer.json is present.
            sentinel_id: Explicit BOS id; otherwise read from the tokenizer config.
        """
        self._lock = Lock()
        self.tok: Tokenizer | None = None
        self._hf_tok = None
        self._sentinel_id = sentinel_id

        source = self._inspect_source(path_or_repo)
        loaded_local = self._load_local_tokenizer(source)

        if not loaded_local:
            if not load_transformers:
                raise ModelResourceError(
                    "FastTokenizer requires load_transformers=True when tokenizer.json "
                    f"is missing at {path_or_repo}"
                )
            self._hf_tok = self._load_transformers_tokenizer(path_or_repo, local_only=source.is_local)

        if self._sentinel_id is None:
            self._sentinel_id = self._resolve_sentinel(source)

    @property
    def sentinel_id(self) -> int | None:
        return self._sentinel_id

    def encode_ids(self, text: str, *, special: bool = True) -> list[int]:
        if not text:
            return []
        with self._lock:
            if self.tok is not None:
                return list(self.tok.encode(text, add_special_tokens=False).ids)
            enc = self._hf_tok(  # type: ignore[misc]
                text,
                add_special_tokens=False,
                split_special_tokens=not special,
                return_attention_mask=False,
                return_token_type_ids=False,
            )
            return list(enc["input_ids"])

    def decode(self, ids: list[int]) -> str:
        if not ids:
            return ""
        with self._lock:
            if self.tok is not None:
                return self.tok.decode(list(ids), skip_special_tokens=False)
            return self._hf_tok.decode(  # type: ignore[union-attr]
                list(ids),
                skip_special_tokens=False,
                clean_up_tokenization_spaces=False,
            )

    def token_to_id(self, token: str) -> int | None:
        with self._lock:
            if self.tok is not None:
                return self.tok.token_to_id(token)
            token_id = self._hf_tok.convert_tokens_to_ids(token)  # type: ignore[union-attr]
            return token_id if token_id != self._hf_tok.unk_token_id else None  # type: ignore[union-attr]

    def _inspect_source(self, path_or_repo: str) -> TokenizerSource:
        is_local = os.path.isdir(path_or_repo)
        tokenizer_json_path = os.path.join(path_or_repo, "tokenizer.json") if is_local else None
        sentinel_token: str | None = None

        if is_local:
            config_path = Path(path_or_repo) / "tokenizer_config.json"
            if config_path.is_file():
                try:
                    config = json.loads(config_path.read_text(encoding="utf-8"))
                except json.JSONDecodeError as exc:
                    logger.warning("tokenizer: unreadable tokenizer_config.json at %s: %s", config_path, exc)
                else:
                    bos = config.get("bos_token")
                    if isinstance(bos, dict):
                        bos = bos.get("content")
                    if isinstance(bos, str) and bos:
                        sentinel_token = bos

        return TokenizerSource(
            original_path=path_or_repo,
            is_local=is_local,
            tokenizer_json_path=tokenizer_json_path,
            sentinel_token=sentinel_token,
        )

    def _load_local_tokenizer(self, source: TokenizerSource) -> bool:
        tokenizer_path = source.tokenizer_json_path
        if not tokenizer_path or not os.path.isfile(tokenizer_path):
            return False
        self.tok = Tokenizer.from_file(tokenizer_path)
        logger.info("tokenizer: loaded local tokenizer.json at %s", tokenizer_path)
        return True

    def _resolve_sentinel(self, source: TokenizerSource) -> int | None:
        if self._hf_tok is not None:
            return getattr(self._hf_tok, "bos_token_id", None)
        if source.sentinel_token:
            return self.token_to_id(source.sentinel_token)
        return None

    def _load_transformers_tokenizer(self, identifier: str, *, local_only: bool):
        try:
            from transformers import AutoTokenizer  # lazy import
        except ImportError as exc:  # pragma: no cover
            raise ModelResourceError(f"transformers is required for tokenizer fallback: {exc}") from exc

        def _try_load(use_fast: bool):
            return AutoTokenizer.from_pretrained(
                identifier,
                use_fast=use_fast,
                trust_remote_code=True,
                local_files_only=local_only,
            )

        try:
            tokenizer = _try_load(True)
        except (OSError, ValueError):
            tokenizer = _try_load(False)

        logger.info(
            "tokenizer: loaded transformers tokenizer target=%s local_only=%s",
            identifier,
            local_only,
        )
        return tokenizer


__all__ = ["FastTokenizer", "TokenizerSource"]
