"""
Educational video generation from a story prompt.

Rendering is simulated: a completed VideoResult is produced immediately and
its metadata is stored so that /video/:id can serve it.
"""

import logging
import random
from typing import Any, Dict, List, Optional

from truthlens.exceptions import NotFoundError, ValidationError
from truthlens.schemas.analyze_schemas import StoryPrompt
from truthlens.schemas.media_schemas import VideoGenerationOptions, VideoResult, VideoTemplate
from truthlens.services.kv_store import KeyValueStore
from truthlens.utils.ids import new_video_id, utc_now_iso

logger = logging.getLogger(__name__)

VIDEO_PREFIX = "video_"
MEDIA_BASE_URL = "https://example.com"
MIN_SIZE_BYTES = 10_000_000
MAX_SIZE_BYTES = 60_000_000

VIDEO_TEMPLATES: List[VideoTemplate] = [
    VideoTemplate(
        id="educational",
        name="Educational Style",
        description="Clean, informative presentation with clear visuals",
        duration=120,
        style="educational",
        thumbnail="/templates/educational-thumb.jpg",
    ),
    VideoTemplate(
        id="dramatic",
        name="Dramatic Style",
        description="Engaging narrative with dramatic visuals and music",
        duration=150,
        style="dramatic",
        thumbnail="/templates/dramatic-thumb.jpg",
    ),
    VideoTemplate(
        id="news",
        name="News Report Style",
        description="Professional news report format with graphics",
        duration=90,
        style="informative",
        thumbnail="/templates/news-thumb.jpg",
    ),
    VideoTemplate(
        id="social",
        name="Social Media Style",
        description="Short, engaging format optimized for social platforms",
        duration=60,
        style="educational",
        thumbnail="/templates/social-thumb.jpg",
    ),
]


def get_template(template_id: str) -> Optional[VideoTemplate]:
    for template in VIDEO_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def generate_video_script(story_prompt: StoryPrompt, template: VideoTemplate) -> str:
    characters = "\n".join(f"{i}. {name}" for i, name in enumerate(story_prompt.characters, start=1))
    return (
        f"# Video Script: {template.name}\n\n"
        f"## Opening (0-10s)\n{story_prompt.scenario}\n\n"
        f"## Characters Introduction (10-30s)\n{characters}\n\n"
        f"## Timeline (30-60s)\n{story_prompt.timeline}\n\n"
        f"## Motivations (60-90s)\n{story_prompt.motivations}\n\n"
        f"## Consequences (90-120s)\n{story_prompt.consequences}\n\n"
        f"## Prevention (120-150s)\n{story_prompt.prevention}\n\n"
        "## Closing (150-180s)\n"
        "Remember: Always verify information through reliable sources and think before sharing."
    )


def generate_video_metadata(story_prompt: StoryPrompt, options: VideoGenerationOptions) -> Dict[str, Any]:
    title = story_prompt.scenario if len(story_prompt.scenario) <= 50 else story_prompt.scenario[:50] + "..."
    return {
        "title": f"TruthLens: {title}",
        "description": f"Educational video about misinformation prevention. {story_prompt.prevention}",
        "tags": ["misinformation", "fact-checking", "education", "truthlens"],
        "category": "Education",
        "language": options.language,
        "duration": options.duration,
        "quality": options.quality,
    }


class VideoGenerationService:
    def __init__(self, store: KeyValueStore, media_base_url: str = MEDIA_BASE_URL):
        self.store = store
        self.media_base_url = media_base_url.rstrip("/")

    def generate(
        self,
        story_prompt: StoryPrompt,
        options: Optional[VideoGenerationOptions] = None,
    ) -> VideoResult:
        options = options or VideoGenerationOptions()
        script = None
        if options.template:
            template = get_template(options.template)
            if template is None:
                raise ValidationError("Unknown video template", details=options.template)
            script = generate_video_script(story_prompt, template)

        video_id = new_video_id()

        result = VideoResult(
            video_id=video_id,
            video_url=f"{self.media_base_url}/videos/{video_id}.mp4",
            thumbnail_url=f"{self.media_base_url}/thumbnails/{video_id}.jpg",
            duration=options.duration,
            size=random.randint(MIN_SIZE_BYTES, MAX_SIZE_BYTES - 1),
            status="completed",
            progress=100,
        )

        self.store.put(video_id, {
            **result.to_wire(),
            "storyPrompt": story_prompt.to_wire(),
            "options": options.to_wire(),
            "metadata": generate_video_metadata(story_prompt, options),
            "script": script,
            "timestamp": utc_now_iso(),
            "generatedBy": "truthlens-ai",
        })
        logger.info(f"Video {video_id} generated ({options.duration}s, {options.style})")
        return result

    def get_video(self, video_id: str) -> Dict[str, Any]:
        record = self.store.get(video_id) if video_id.startswith(VIDEO_PREFIX) else None
        if not record:
            raise NotFoundError("Video not found")
        return record
