"""
Demo corpus and corpus file loading.
"""

from pathlib import Path
from typing import List

# Mixed Japanese/English demo documents
DEFAULT_CORPUS = [
    "こんにちは！ベクトル検索のデモです",
    "This is a demo of vector search",
    "今日はとても良い天気です。",
    "Today is a very nice day.",
    "こんにちは、世界！",
    "Hello, world!",
    "ベクトル検索って何ですか？",
    "What is vector search?",
    "ベクトル検索は、情報検索の一種で、データをベクトル空間にマッピングし、類似性を測定する手法です。",
]

DEFAULT_QUERY = "こんにちは！ベクトル検索のデモです"


def load_corpus_file(path) -> List[str]:
    """Read one document per non-blank line."""
    text = Path(path).read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]
