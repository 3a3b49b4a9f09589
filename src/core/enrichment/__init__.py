"""Image and video enrichment for generated news items."""

from .image_resolver import ImageResolver, is_valid_image_url, filename_matches_subject
from .video_matcher import VideoMatcher, VIDEO_KEYWORDS, has_video_keyword

__all__ = [
    'ImageResolver',
    'is_valid_image_url',
    'filename_matches_subject',
    'VideoMatcher',
    'VIDEO_KEYWORDS',
    'has_video_keyword',
]
