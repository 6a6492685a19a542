"""
Mean pooling
=============
Reduces the token-level output of the encoder, shape (seq_len, hidden_dim),
to a single sentence vector of shape (hidden_dim,).

The average is unweighted: every row counts, including any padding rows.
The local backend only ever sends unpadded single sequences, so every row
is a real token.
"""

import numpy as np


def mean_pool(token_embeddings) -> np.ndarray:
    """
    Average per-token vectors across the sequence dimension.

    Args:
        token_embeddings : matrix of shape (T, D), T >= 1

    Returns:
        np.ndarray of shape (D,), dtype float32.

    Raises:
        ValueError : if the matrix is not 2-D or has no rows
    """
    matrix = np.asarray(token_embeddings, dtype=np.float32)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a (tokens, dims) matrix, got shape {matrix.shape}")
    if matrix.shape[0] == 0:
        raise ValueError("Cannot pool an empty token matrix")
    return matrix.mean(axis=0, dtype=np.float32)
