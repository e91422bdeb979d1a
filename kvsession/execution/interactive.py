"""Interactive generation loop.

One executor drives one conversation against one engine. Each ``infer`` call
is a turn:

1. Preprocess: tokenize the new text into ``input_tokens`` (the first turn
   replaces the prompt and may reuse a saved session cache prefix).
2. Step until the loop condition fails:
   - advance: make pending tokens resident, shifting the context first when
     they would not fit and splicing queued image embeddings in place;
   - then either feed the next input batch into pending, or, once all input
     is consumed, sample one token and yield its text.
3. Postprocess after every step: stop strings, end-of-sequence, and the
   token budget decide whether the turn ends.

Turn phases:
    PROMPT_CONSUMPTION -> GENERATING -> WAITING_FOR_INPUT  (next infer resumes)
                                     -> TERMINATED         (end-of-sequence)

A failed engine advance raises EngineDecodeError out of ``infer``. Tokens
that were not advanced stay pending and the next ``infer`` retries them.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..config import (
    ADD_SENTINEL_ON_PROMPT,
    DEFAULT_SEQUENCE_ID,
    END_OF_TEXT_MARKER,
    IMAGE_PLACEHOLDER,
)
from ..context.prefix import MatchQuality, describe_match, matched_length
from ..context.shift import ContextWindowController
from ..context.splice import SpliceResult, splice
from ..engines.base import BaseEngine
from ..engines.embeddings import EmbeddingProvider
from ..errors import EngineDecodeError, StateRestoreError, ValidationError
from ..logging import log_context
from ..persistence.session_file import SessionCacheFile, engine_cache_path
from ..persistence.snapshot import restore, snapshot
from ..sampling.manual import ManualSampler
from ..sampling.params import InferenceParams
from ..sampling.torch_sampler import TorchSampler
from ..state.embedding import EmbeddingInsertion, pending_in_range
from ..state.loop import LoopControlState, LoopPhase
from ..state.session import SessionState
from ..telemetry.sentry import add_breadcrumb, capture_error
from ..tokens.decoder import StreamingTokenDecoder
from ..tokens.base import BaseTokenizer
from ..tokens.window import RecentTokenWindow

logger = logging.getLogger(__name__)


class InteractiveExecutor:
    """Stateful turn-taking generation over a fixed-size context."""

    def __init__(
        self,
        engine: BaseEngine,
        tokenizer: BaseTokenizer,
        *,
        embeddings: EmbeddingProvider | None = None,
        sampler: ManualSampler | None = None,
        session_id: str | None = None,
        add_sentinel_on_prompt: bool = ADD_SENTINEL_ON_PROMPT,
        image_placeholder: str = IMAGE_PLACEHOLDER,
        sequence_id: int = DEFAULT_SEQUENCE_ID,
        window_capacity: int | None = None,
    ) -> None:
        """Create an executor bound to ``engine``.

        Args:
            engine: Engine whose cache this executor owns exclusively.
            tokenizer: Tokenizer matching the engine's model.
            embeddings: Image embedding provider; enables multimodal input.
            sampler: Manual sampler used when a call has no sampling pipeline.
            session_id: Log/telemetry identifier (random when omitted).
            add_sentinel_on_prompt: Tokenize the first prompt with the sentinel.
            image_placeholder: Marker replaced by queued image embeddings.
            sequence_id: Engine cache sequence for this conversation.
            window_capacity: Recent-token window size (defaults to the context size).
        """
        self.engine = engine
        self.tokenizer = tokenizer
        self.session_id = session_id or uuid.uuid4().hex
        self.add_sentinel_on_prompt = add_sentinel_on_prompt
        self.image_placeholder = image_placeholder
        self.images: list[bytes] = []

        self._embeddings = embeddings
        self._sampler = sampler or TorchSampler()
        self._sequence_id = sequence_id
        self._window_capacity = window_capacity if window_capacity is not None else engine.context_size
        self._controller = ContextWindowController(engine, sequence_id=sequence_id)
        self._decoder = StreamingTokenDecoder(tokenizer)
        self._insertions: list[EmbeddingInsertion] = []
        self._turn_active = False

        self.state = SessionState(recent_window=RecentTokenWindow(self._window_capacity))
        self.phase = LoopPhase.PROMPT_CONSUMPTION

    @property
    def is_multimodal(self) -> bool:
        return self._embeddings is not None

    @property
    def pending_insertions(self) -> list[EmbeddingInsertion]:
        return list(self._insertions)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_image(self, image: bytes) -> None:
        """Queue an image for the next input containing the placeholder."""
        if not self.is_multimodal:
            raise ValidationError("not_multimodal", "executor has no embedding provider for images")
        self.images.append(image)

    def with_session_file(self, path: str) -> int:
        """Attach a session cache file and load it if it exists.

        Must be called before the first prompt. The loaded tokens are matched
        against that prompt so a shared prefix is not evaluated again.

        Returns:
            Number of cached tokens available for prefix reuse.
        """
        if not self.state.prompt_run:
            raise ValidationError(
                "session_in_progress",
                "a session file can only be attached before the first prompt",
            )
        with self._log_scope():
            tokens: list[int] = []
            if SessionCacheFile.exists(path):
                tokens = SessionCacheFile.read(path)
                if tokens and not self.engine.load_cache(engine_cache_path(path)):
                    logger.warning(
                        "session: engine cannot restore cache cells for %s; prefix reuse disabled",
                        path,
                    )
                    tokens = []
                logger.info("session: loaded session cache path=%s tokens=%d", path, len(tokens))
            else:
                logger.warning("session: session file %s does not exist, will create", path)

            self.state.session_cache_path = path
            self.state.session_tokens = tokens
            self.state.session_consumed = 0
        return len(tokens)

    async def infer(self, text: str | None, params: InferenceParams | None = None) -> AsyncIterator[str]:
        """Run one turn and yield generated text as it is produced.

        Args:
            text: New input. Required on the first turn; None afterwards
                continues generation without adding input.
            params: Sampling and stopping parameters.

        Raises:
            ValidationError: Bad input or a turn already running.
            EngineDecodeError: The engine rejected an advance; retry later.
            ContextConfigError: The context can never fit the pending input.
        """
        params = params or InferenceParams()
        params.validate()
        if self._turn_active:
            raise ValidationError("turn_in_progress", "a turn is already running for this session")

        turn_id = uuid.uuid4().hex[:12]
        loop = LoopControlState(
            remaining_tokens=params.max_tokens,
            stop_strings=list(params.stop_strings),
        )
        self._turn_active = True
        try:
            with self._log_scope(turn_id):
                self._preprocess(text, loop)
                self._decoder.reset()
                self.phase = (
                    LoopPhase.PROMPT_CONSUMPTION if self.state.remaining_input else LoopPhase.GENERATING
                )

            while self._loop_condition(loop):
                with self._log_scope(turn_id):
                    await self._run_step(params, loop)
                    chunk = self._emit(loop)
                if chunk:
                    yield chunk

                with self._log_scope(turn_id):
                    stop, extra = self._postprocess(params, loop)
                for item in extra:
                    yield item
                if stop:
                    break
            else:
                self.phase = LoopPhase.WAITING_FOR_INPUT
        finally:
            self._turn_active = False

    def snapshot(self) -> bytes:
        """Serialize the session state."""
        if self._insertions:
            logger.warning(
                "session: %d pending embeddings are not persisted in snapshots",
                len(self._insertions),
            )
        return snapshot(self.state)

    def restore(self, blob: bytes | str) -> SessionState:
        """Replace the session state with a snapshot."""
        if self._turn_active:
            raise ValidationError("turn_in_progress", "cannot restore state while a turn is running")
        state = restore(blob)
        self.state = state
        self._insertions = []
        self._decoder.reset()
        self.phase = LoopPhase.PROMPT_CONSUMPTION if state.prompt_run else LoopPhase.WAITING_FOR_INPUT
        return state

    def save_state(self, path: str) -> None:
        Path(path).write_bytes(self.snapshot())

    def load_state(self, path: str) -> SessionState:
        state_path = Path(path)
        if not state_path.is_file():
            raise StateRestoreError(f"state file {path} does not exist")
        return self.restore(state_path.read_bytes())

    def reset(self) -> None:
        """Forget the conversation and clear the engine cache."""
        if self._turn_active:
            raise ValidationError("turn_in_progress", "cannot reset while a turn is running")
        self.engine.clear_all()
        self._release_insertions()
        self.images.clear()
        self._decoder.reset()
        self.state = SessionState(recent_window=RecentTokenWindow(self._window_capacity))
        self.phase = LoopPhase.PROMPT_CONSUMPTION

    # ------------------------------------------------------------------
    # Turn stages
    # ------------------------------------------------------------------

    def _loop_condition(self, loop: LoopControlState) -> bool:
        return (loop.remaining_tokens != 0 and not loop.wait_for_input) or self.state.prompt_run

    def _preprocess(self, text: str | None, loop: LoopControlState) -> None:
        state = self.state
        if state.prompt_run:
            if text is None:
                raise ValidationError(
                    "prompt_required",
                    "a prompt is required before generation can continue",
                )
            result = self._tokenize_input(text, add_sentinel=self.add_sentinel_on_prompt, offset=0)
            state.input_tokens = result.tokens
            state.consumed_count = 0
            self._release_insertions()
            self._insertions = result.insertions
            self._reuse_session_prefix()
            logger.debug("turn: prompt tokens=%d insertions=%d", len(result.tokens), len(result.insertions))
            return

        # Continuation requested without new input
        if text is None:
            return
        if not text.endswith("\n"):
            text += "\n"
        result = self._tokenize_input(text, add_sentinel=False, offset=len(state.input_tokens))
        state.input_tokens.extend(result.tokens)
        self._insertions.extend(result.insertions)
        loop.remaining_tokens -= len(result.tokens)
        logger.debug("turn: input tokens=%d insertions=%d", len(result.tokens), len(result.insertions))

    def _tokenize_input(self, text: str, *, add_sentinel: bool, offset: int) -> SpliceResult:
        if self._embeddings is not None and self.image_placeholder in text:
            handles = [self._embeddings.create_from_image(image) for image in self.images]
            self.images.clear()
            return splice(
                text,
                self.image_placeholder,
                self.tokenizer,
                add_sentinel=add_sentinel,
                handles=handles,
                offset=offset,
            )
        return SpliceResult(tokens=self.tokenizer.tokenize(text, add_sentinel=add_sentinel))

    def _reuse_session_prefix(self) -> None:
        state = self.state
        if not state.session_tokens:
            return
        matched = matched_length(state.session_tokens, state.input_tokens)
        if self._insertions:
            # Cached cells past an embedding slot cannot stand in for the embedding
            first_slot = min(record.position for record in self._insertions)
            if matched > first_slot:
                logger.info(
                    "session: prefix reuse stops at embedding position %d matched=%d",
                    first_slot,
                    matched,
                )
                matched = first_slot
        quality = describe_match(matched, len(state.input_tokens))
        if quality is MatchQuality.EXACT:
            logger.info("session: cache has an exact match for the prompt tokens=%d", matched)
        elif quality is MatchQuality.LOW:
            logger.warning(
                "session: cache has low similarity to the prompt matched=%d/%d; most of it will be re-evaluated",
                matched,
                len(state.input_tokens),
            )
        else:
            logger.info("session: cache matches %d/%d prompt tokens", matched, len(state.input_tokens))

        # Cells past the match belong to a different history
        self.engine.drop_range(self._sequence_id, matched, -1)
        del state.session_tokens[matched:]
        state.session_consumed = matched
        state.consumed_count = matched
        state.resident_count = matched
        state.cached_prefix_length = matched
        state.recent_window.extend(state.input_tokens[:matched])

    async def _run_step(self, params: InferenceParams, loop: LoopControlState) -> None:
        state = self.state
        loop.return_value = False

        if state.pending_tokens:
            state.prompt_run = False
            self._controller.shift_if_needed(state, params.tokens_keep, len(state.pending_tokens))
            try:
                await self._advance_pending(loop)
            except EngineDecodeError as exc:
                self.phase = LoopPhase.WAITING_FOR_INPUT
                logger.warning(
                    "turn: abandoned status=%s resident=%d pending=%d",
                    exc.status.value,
                    state.resident_count,
                    len(state.pending_tokens),
                )
                add_breadcrumb(
                    "turn abandoned",
                    category="turn",
                    level="warning",
                    data={"status": exc.status.value, "resident": state.resident_count},
                )
                capture_error(
                    exc,
                    session_id=self.session_id,
                    extra={"resident": state.resident_count, "pending": len(state.pending_tokens)},
                )
                raise

        if state.input_consumed and not loop.wait_for_input:
            self._sample(params, loop)
        else:
            self._feed_input()

    async def _advance_pending(self, loop: LoopControlState) -> None:
        state = self.state
        # Pending tokens sit right before input_tokens[consumed_count]
        start = state.consumed_count - len(state.pending_tokens)
        records = pending_in_range(self._insertions, start, state.consumed_count)

        for position, group in itertools.groupby(records, key=lambda record: record.position):
            before = position - (state.consumed_count - len(state.pending_tokens))
            if before > 0:
                await self._advance_tokens(before, loop)
            for record in group:
                await self._evaluate_embedding(record)
        if state.pending_tokens:
            await self._advance_tokens(len(state.pending_tokens), loop)

    async def _advance_tokens(self, count: int, loop: LoopControlState) -> None:
        """Advance the first ``count`` pending tokens and drop them from pending."""
        state = self.state
        tokens = state.pending_tokens[:count]
        start = state.resident_count
        result = await self.engine.advance(tokens, self._sequence_id, start)
        state.resident_count = result.new_position

        if result.status.ok:
            advanced = len(tokens)
        else:
            advanced = min(len(tokens), max(0, result.new_position - start))
        del state.pending_tokens[:advanced]

        if advanced and state.session_cache_path is not None:
            state.session_tokens.extend(tokens[:advanced])
            state.session_consumed = len(state.session_tokens)
            loop.need_to_save_session = True

        if not result.status.ok:
            raise EngineDecodeError(result.status, result.new_position)

    async def _evaluate_embedding(self, record: EmbeddingInsertion) -> None:
        state = self.state
        assert self._embeddings is not None
        state.resident_count = await self._embeddings.evaluate(record.handle, state.resident_count)
        self._insertions.remove(record)
        self._embeddings.release(record.handle)
        # Embedding positions have no token ids to mirror in the session cache
        if state.session_cache_path is not None:
            logger.info("session: session cache disabled after embedding path=%s", state.session_cache_path)
            state.session_cache_path = None

    def _sample(self, params: InferenceParams, loop: LoopControlState) -> None:
        state = self.state
        special = self.engine.special_tokens

        if state.session_cache_path is not None and loop.need_to_save_session:
            loop.need_to_save_session = not self._save_session_file(state.session_cache_path)

        logits = self.engine.logits_for_last_position()
        recent = state.recent_window.to_list()
        pipeline = params.sampling_pipeline
        if pipeline is not None:
            token_id = pipeline.sample(logits, recent)
            pipeline.accept(token_id)
        else:
            distribution = self._sampler.penalize(
                logits,
                recent,
                params,
                newline_id=special.newline_id,
                context_size=self.engine.context_size,
            )
            token_id, state.sampler_aux = self._sampler.sample_from(distribution, state.sampler_aux, params)

        state.recent_window.enqueue(token_id)

        if token_id == special.eos_id and special.newline_id is not None:
            token_id = special.newline_id
            if loop.stop_strings:
                # Forced continuation: the stop string is fed back as input
                forced = self.tokenizer.tokenize(loop.stop_strings[0], add_sentinel=False)
                state.input_tokens.extend(forced)
                logger.debug("turn: end-of-sequence replaced, forcing %d stop tokens", len(forced))

        state.pending_tokens.append(token_id)
        loop.remaining_tokens -= 1
        loop.return_value = True
        self.phase = LoopPhase.GENERATING

    def _feed_input(self) -> None:
        state = self.state
        batch_size = self.engine.batch_size
        while state.consumed_count < len(state.input_tokens) and len(state.pending_tokens) < batch_size:
            token_id = state.input_tokens[state.consumed_count]
            state.pending_tokens.append(token_id)
            state.recent_window.enqueue(token_id)
            state.consumed_count += 1

    def _emit(self, loop: LoopControlState) -> str:
        if not loop.return_value:
            return ""
        self._decoder.add(self.state.pending_tokens)
        return self._decoder.read()

    def _postprocess(self, params: InferenceParams, loop: LoopControlState) -> tuple[bool, list[str]]:
        state = self.state
        if state.input_consumed:
            if state.recent_window.ends_with_any(loop.stop_strings, self.tokenizer):
                loop.wait_for_input = True
            if state.resident_count > 0 and loop.wait_for_input:
                self.phase = LoopPhase.WAITING_FOR_INPUT
                return True, []

        if state.pending_tokens and state.pending_tokens[-1] == self.engine.special_tokens.eos_id:
            self.phase = LoopPhase.TERMINATED
            return True, [END_OF_TEXT_MARKER]

        if loop.remaining_tokens <= 0 and params.max_tokens != -1:
            loop.remaining_tokens = params.max_tokens
            loop.wait_for_input = True
        return False, []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _save_session_file(self, path: str) -> bool:
        tokens = self.state.session_tokens
        try:
            SessionCacheFile.write(path, tokens)
            if self.engine.supports_cache_persistence:
                self.engine.save_cache(engine_cache_path(path), tokens)
        except OSError as exc:
            logger.warning("session: failed to save session cache path=%s: %s", path, exc)
            return False
        logger.debug("session: saved session cache path=%s tokens=%d", path, len(tokens))
        return True

    def _release_insertions(self) -> None:
        if self._embeddings is not None:
            for record in self._insertions:
                self._embeddings.release(record.handle)
        self._insertions = []

    @contextmanager
    def _log_scope(self, turn_id: str | None = None) -> Iterator[None]:
        with log_context(session_id=self.session_id, turn_id=turn_id):
            yield


__all__ = ["InteractiveExecutor"]
