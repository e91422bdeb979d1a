"""kvsession: stateful interactive generation over a fixed-size context.

This package drives multi-turn token generation against an external
inference engine whose key/value cache holds a bounded window of the
conversation. It handles:

- Prompt and continuation tokenization, with image embeddings spliced in
- Context shifting when the resident tokens overflow the engine window
- Reuse of a saved session cache prefix on the first prompt
- Stop strings, token budgets and end-of-sequence handling
- Snapshot/restore of the whole session state

Architecture Overview:
    - config/: Configuration modules (environment-based)
    - engines/: Engine and embedding provider contracts
    - execution/: The interactive generation loop
    - context/: Shift controller, prefix matcher, embedding splicer
    - state/: Session and per-turn loop state
    - sampling/: Inference parameters and samplers
    - persistence/: State snapshots and session cache files
    - tokens/: Tokenizer adapter, recent-token window, streaming decoder
    - models/: Cancellable weight loading
    - telemetry/: Sentry error reporting
    - helpers/: Shared utility functions

Example:
    executor = InteractiveExecutor(engine, FastTokenizer("/models/chat"))
    async for text in executor.infer("User: hi\\nAssistant:", InferenceParams(stop_strings=["User:"])):
        print(text, end="")

Environment Variables:
    - CONTEXT_SIZE, BATCH_SIZE: Engine window defaults
    - ADD_SENTINEL_ON_PROMPT: Prepend the BOS token to the first prompt
    - STOP_STRINGS: Pipe-separated default stop strings
    - APP_LOG_LEVEL: Logging verbosity
    - SENTRY_DSN: Enables Sentry error reporting
"""
