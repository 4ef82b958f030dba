import os

# Settings are instantiated at import time; provide the required values first.
os.environ.setdefault("AZURE_SEARCH_ENDPOINT", "https://test-search.search.windows.net")
os.environ.setdefault("AZURE_SEARCH_KEY", "test-search-key")
os.environ.setdefault("AZURE_SEARCH_INDEX_NAME", "test-index")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("EMBEDDING_DIMENSIONS", "1536")
