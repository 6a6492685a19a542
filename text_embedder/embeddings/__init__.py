"""
Embeddings subpackage -- text-to-vector encoding.

    tokenizer  -- WordPiece encoding into model-ready sequences
    pooling    -- mean pooling of token vectors
    validator  -- local model / remote credential checks
    embedder   -- Embedder facade (local or remote)
"""
