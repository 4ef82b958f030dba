import argparse
import asyncio
import logging
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from vector_search_service.config import settings
from vector_search_service.core.errors import ServiceError
from vector_search_service.embeddings.embedder import Embedder
from vector_search_service.indexing import IndexManager, dump_documents, load_source_documents
from vector_search_service.search.azure import AzureSearchProvider
from vector_search_service.search.dispatcher import QueryDispatcher, equals_filter, format_result

DEFAULT_DATA = os.path.join(os.path.dirname(__file__), "data", "text-sample.json")


def _print_result(heading, result):
    print(f"\n=== {heading} ===")
    for line in format_result(result):
        print(line)


async def main(args):
    embedder = Embedder()
    provider = AzureSearchProvider()
    manager = IndexManager(provider, embedder)
    dispatcher = QueryDispatcher(provider, embedder)

    try:
        if not args.skip_index:
            print(f"Creating or updating index '{manager.schema.name}'...")
            await manager.ensure_index()

            sources = load_source_documents(args.data)
            print(f"Loaded {len(sources)} documents. Creating embeddings...")
            documents = await manager.prepare_documents(sources)

            if args.dump:
                written = dump_documents(documents, args.dump)
                print(f"Wrote {written} vectorized documents to {args.dump}")

            count = await manager.upload(documents)
            print(f"Uploaded {count} documents.")

        query = args.query

        _print_result("Vector search", await dispatcher.vector_search(query, k=args.k))
        _print_result(
            "Cross-field vector search",
            await dispatcher.multi_vector_search(query, k=args.k),
        )
        _print_result(
            f"Filtered vector search (category = {args.category})",
            await dispatcher.filtered_vector_search(
                query, equals_filter("category", args.category), k=args.k
            ),
        )
        _print_result("Hybrid search", await dispatcher.hybrid_search(query, k=args.k, top=args.k))
        _print_result(
            "Semantic hybrid search",
            await dispatcher.semantic_hybrid_search(args.semantic_query, k=args.k, top=args.k),
        )
    except ServiceError as exc:
        print(f"Request failed: {exc}")
        return 1
    finally:
        await provider.close()

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Index sample documents and run every query mode.")
    parser.add_argument("--data", default=DEFAULT_DATA, help="JSON array of source documents")
    parser.add_argument("--dump", help="Write vectorized documents to this JSON file")
    parser.add_argument("--skip-index", action="store_true", help="Query an existing index only")
    parser.add_argument("--query", default="tools for software development")
    parser.add_argument("--semantic-query", default="what is azure search?")
    parser.add_argument("--category", default="Developer Tools")
    parser.add_argument("-k", type=int, default=settings.default_k)
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level)
    sys.exit(asyncio.run(main(args)))
