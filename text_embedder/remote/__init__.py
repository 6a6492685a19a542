"""Remote subpackage -- HTTP client and the OpenAI embeddings backend."""
