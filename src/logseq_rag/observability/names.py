# src/logseq_rag/observability/names.py

"""Standard metric names for logseq-rag observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
Units are handled by the metrics backend (e.g., converted to seconds in Prometheus).
"""

# ============================================================================
# LLM Metrics
# ============================================================================

# Duration
LLM_COMPLETION_DURATION = "llm_completion_duration"
LLM_STREAM_DURATION = "llm_stream_duration"

# Counters
LLM_REQUESTS_TOTAL = "llm_requests_total"

# Counters (token usage - monotonic over time for cost/rate tracking)
LLM_TOKENS_PROMPT = "llm_tokens_prompt"
LLM_TOKENS_COMPLETION = "llm_tokens_completion"
LLM_TOKENS_TOTAL = "llm_tokens_total"


# ============================================================================
# Embeddings Metrics
# ============================================================================

# Duration
EMBEDDINGS_OPENAI_DURATION = "openai_embeddings_duration"
EMBEDDINGS_LOCAL_DURATION = "local_embeddings_duration"

# Counters
EMBEDDINGS_REQUESTS_TOTAL = "embeddings_requests_total"


# ============================================================================
# Vector Store Metrics (Qdrant)
# ============================================================================

# Duration
QDRANT_UPSERT_DURATION = "qdrant_upsert_duration"
QDRANT_QUERY_DURATION = "qdrant_query_duration"
QDRANT_DELETE_DURATION = "qdrant_delete_duration"

# Counters
QDRANT_OPERATIONS_TOTAL = "qdrant_operations_total"


# ============================================================================
# Chunking Metrics
# ============================================================================

# Duration
CHUNKING_DURATION = "chunking_duration"

# Counters (chunks accumulate over time)
CHUNKING_CHUNKS_CREATED = "chunking_chunks_created"
CHUNKING_OVERSIZED_SECTIONS = "chunking_oversized_sections"


# ============================================================================
# Indexing / Retrieval Metrics
# ============================================================================

# Duration
INDEXING_BATCH_DURATION = "indexing_batch_duration"
RETRIEVAL_DURATION = "retrieval_duration"

# Counters
INDEXING_CHUNKS_TOTAL = "indexing_chunks_total"
RETRIEVAL_RESULTS_TOTAL = "retrieval_results_total"


# ============================================================================
# Sync Metrics
# ============================================================================

# Duration
SYNC_DURATION = "sync_duration"

# Counters
SYNC_PAGES_INDEXED = "sync_pages_indexed"
SYNC_PAGES_FAILED = "sync_pages_failed"
