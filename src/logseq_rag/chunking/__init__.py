from .bullets import BulletNode, estimate_tokens, parse_bullet_tree, render_bullets
from .chunking import Chunk, ChunkMetadata, LogseqChunker

__all__ = [
    "BulletNode",
    "Chunk",
    "ChunkMetadata",
    "LogseqChunker",
    "estimate_tokens",
    "parse_bullet_tree",
    "render_bullets",
]
