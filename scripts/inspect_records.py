# =============================================================================
# Screenlog - Record Inspection Script
# =============================================================================
# Diagnostics against a running server: dump the record log, print counts,
# show the closest pair of embeddings, print embedding clusters, show the
# context that would be sent to a prompt, check the generation endpoint, or
# request a prediction.
#
# Usage:
#   python3 scripts/inspect_records.py records
#   python3 scripts/inspect_records.py stats
#   python3 scripts/inspect_records.py nearest
#   python3 scripts/inspect_records.py clusters --threshold 0.85
#   python3 scripts/inspect_records.py context
#   python3 scripts/inspect_records.py ping
#   python3 scripts/inspect_records.py predict --full-log --template summary
# =============================================================================

import argparse
import os
import sys

import requests

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))

from config import get_config  # noqa: E402


def _get(base_url: str, path: str, **params) -> dict:
    response = requests.get(f"{base_url}{path}", params=params or None, timeout=60)
    response.raise_for_status()
    return response.json()


def dump_records(base_url: str) -> None:
    page = 1
    printed = 0
    while True:
        data = _get(base_url, "/api/v1/records", page=page, page_size=500)
        for record in data["records"]:
            text = record["content"].replace("\n", " ")
            print(f"{record['timestamp']} | content: {text}")
            print(f"   description: {record['description'] or '<none>'}")
            print(f"   embedding stored: {'Y' if record['has_embedding'] else 'N'}")
            printed += 1
        if printed >= data["total_count"] or not data["records"]:
            break
        page += 1

    if printed == 0:
        print("No records stored")


def print_stats(base_url: str) -> None:
    stats = _get(base_url, "/api/v1/records/stats")
    print(f"Records stored: {stats['total']}")
    print(f"Records with description: {stats['with_description']}")
    print(f"Records with embedding: {stats['with_embedding']}")


def print_nearest(base_url: str) -> None:
    data = _get(base_url, "/api/v1/diagnostics/nearest")
    if not data["sufficient"]:
        print("Not enough embeddings to compare.")
        return
    print(f"Closest embeddings similarity: {data['similarity']:.3f}")
    for label, record in (("A", data["first"]), ("B", data["second"])):
        print(f"Record {label} description: {record['description'] or '<none>'}")
        print(f"Record {label} content: {record['content'][:120]}")


def print_clusters(base_url: str, threshold: float) -> None:
    data = _get(base_url, "/api/v1/diagnostics/clusters", threshold=threshold)
    clusters = data["clusters"]
    if not clusters:
        print("No embeddings stored.")
        return
    print(f"Formed {len(clusters)} embedding clusters (threshold {data['threshold']}).")
    for cluster in clusters:
        print(f"Cluster {cluster['index'] + 1} ({cluster['size']} items)")
        for record in cluster["records"]:
            label = record["description"] or record["content"].replace("\n", " ")[:80]
            print(f"  {record['timestamp']} -> {label}")


def print_context(base_url: str) -> None:
    data = _get(base_url, "/api/v1/context")
    print(f"Selected {len(data['records'])} records\n")
    print(data["log"])


def check_generation(base_url: str) -> None:
    data = _get(base_url, "/api/v1/diagnostics/generation")
    status = "OK" if data["ok"] else "unexpected reply"
    print(f"Generation endpoint: {status} ({data['duration_seconds']:.2f}s)")
    print(f"Reply: {data['reply']}")


def request_prediction(base_url: str, full_log: bool, template: str) -> None:
    response = requests.post(
        f"{base_url}/api/v1/predictions",
        json={"use_recent_context": not full_log, "template": template},
        timeout=300,
    )
    response.raise_for_status()
    data = response.json()
    print(f"[{data['record_count']} records, {data['duration_seconds']:.2f}s]\n")
    print(data["text"])


def main():
    config = get_config()
    parser = argparse.ArgumentParser(description="Inspect a Screenlog server's record log")
    parser.add_argument("--server-url", type=str, default=config.server_url)
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("records", help="Dump every record")
    sub.add_parser("stats", help="Record counts")
    sub.add_parser("nearest", help="Closest pair of embeddings")
    clusters = sub.add_parser("clusters", help="Greedy embedding clusters")
    clusters.add_argument("--threshold", type=float, default=config.cluster_threshold)
    sub.add_parser("context", help="Context selected for a prompt")
    sub.add_parser("ping", help="Round-trip the ACK prompt through the generation endpoint")
    predict = sub.add_parser("predict", help="Request a prediction")
    predict.add_argument("--full-log", action="store_true", help="Send the whole log, not the selected context")
    predict.add_argument("--template", choices=["predict", "summary"], default="predict")
    args = parser.parse_args()

    base_url = args.server_url.rstrip("/")
    if args.command == "records":
        dump_records(base_url)
    elif args.command == "stats":
        print_stats(base_url)
    elif args.command == "nearest":
        print_nearest(base_url)
    elif args.command == "clusters":
        print_clusters(base_url, args.threshold)
    elif args.command == "context":
        print_context(base_url)
    elif args.command == "ping":
        check_generation(base_url)
    elif args.command == "predict":
        request_prediction(base_url, args.full_log, args.template)


if __name__ == "__main__":
    main()
