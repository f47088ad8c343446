"""Check that Ollama is running and serves the configured embedding model."""

import sys

import httpx

from context_engine.config import get_embedding_dim, get_embedding_model, get_ollama_url


def main() -> None:
    """Check Ollama connectivity, model availability and vector dimension."""
    url = get_ollama_url()
    model = get_embedding_model()
    dim = get_embedding_dim()
    print(f"Checking Ollama at {url} for model {model} ({dim} dims)...")

    try:
        resp = httpx.get(f"{url}/api/tags", timeout=5.0)
        resp.raise_for_status()
        models = [m["name"] for m in resp.json().get("models", [])]
        print(f"Available models: {', '.join(models) or '(none)'}")

        if not any(model in m for m in models):
            print(f"  {model} not found, run: ollama pull {model}")
            sys.exit(1)

        resp = httpx.post(
            f"{url}/api/embed",
            json={"model": model, "input": ["dimension probe"]},
            timeout=30.0,
        )
        resp.raise_for_status()
        got = len(resp.json()["embeddings"][0])
        if got != dim:
            print(f"  {model} returns {got}-dim vectors, CE_EMBEDDING_DIM is {dim}")
            sys.exit(1)
        print(f"  {model} is available and returns {dim}-dim vectors")
    except httpx.ConnectError:
        print("  Ollama is not running. Start it with: ollama serve")
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"  Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
