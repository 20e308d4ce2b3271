"""
Animation generation: per-clip video prompts and image-to-video clips.
"""

from typing import Any, Dict, List, Optional, Tuple

from modo.exceptions import InsufficientCreditsError, ModoError, ValidationError
from modo.models import AnimationVersion, ClipVideoVersion
from modo.models.visual import CAMERA_MOTIONS
from modo.prompts import build_animation_prompt
from modo.services.generation_service import GenerationResult, GenerationService, generation_service
from modo.storage.animations import AnimationStorage
from modo.storage.projects import ProjectStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)


class AnimationService:

    def __init__(
        self,
        generation: Optional[GenerationService] = None,
        projects: Optional[ProjectStorage] = None,
        animations: Optional[AnimationStorage] = None,
    ) -> None:
        self.generation = generation or generation_service
        self.projects = projects or ProjectStorage()
        self.animations = animations or AnimationStorage()

    async def get_owned_version(self, version_id: str, user_id: str) -> AnimationVersion:
        version = await self.animations.get_version(version_id)
        await self.projects.get_owned_project(version.project_id, user_id)
        return version

    async def generate_prompts(
        self,
        version_id: str,
        user_id: str,
        clip_ids: Optional[List[str]] = None,
    ) -> Tuple[int, List[Dict[str, Any]]]:
        """
        为片段生成视频提示词 / Generate video prompts for clips

        Each clip is metered separately as `animation_prompt`. An unknown
        camera motion from the AI falls back to `static`.
        """
        version = await self.get_owned_version(version_id, user_id)
        clips = await self.animations.list_clips(version_id)
        if clip_ids:
            wanted = set(clip_ids)
            clips = [c for c in clips if c.id in wanted]
        if not clips:
            raise ValidationError("No clips to generate prompts for")

        generated = 0
        results: List[Dict[str, Any]] = []
        for clip in clips:
            try:
                data, _ = await self.generation.generate_json(
                    user_id,
                    "animation_prompt",
                    build_animation_prompt(clip),
                    dict,
                    project_id=version.project_id,
                    input_params={"clip_id": clip.id},
                )
            except InsufficientCreditsError:
                if generated == 0:
                    raise
                results.append({"clip_id": clip.id, "error": "Insufficient credits"})
                break
            except ModoError as e:
                logger.warning(f"Prompt generation failed for clip {clip.id}: {e.message}")
                results.append({"clip_id": clip.id, "error": e.message})
                continue

            motion = data.get("camera_motion")
            if motion not in CAMERA_MOTIONS:
                motion = "static"
            if not data.get("video_prompt"):
                results.append({"clip_id": clip.id, "error": "AI returned no video_prompt"})
                continue
            await self.animations.update_clip(
                clip.id,
                {"video_prompt": str(data["video_prompt"]), "camera_motion": motion, "status": "prompt_ready"},
            )
            generated += 1
            results.append({"clip_id": clip.id, "video_prompt": data["video_prompt"], "camera_motion": motion})
        return generated, results

    async def generate_video(self, clip_id: str, user_id: str) -> Tuple[ClipVideoVersion, GenerationResult]:
        """
        生成片段视频 / Image-to-video for one clip

        On success the clip is `completed` with a new active `generated`
        video version; on failure it is `failed` with the error message.
        Either way the version's progress is recomputed.
        """
        clip = await self.animations.get_clip(clip_id)
        version = await self.get_owned_version(clip.animation_version_id, user_id)
        if not clip.source_image_url:
            raise ValidationError("Clip has no source image")
        prompt = clip.video_prompt or clip.key_action_description
        if not prompt:
            raise ValidationError("Clip has no video prompt")

        await self.animations.update_clip(clip_id, {"status": "processing"})
        try:
            result = await self.generation.generate(
                user_id,
                "video",
                prompt,
                project_id=version.project_id,
                input_params={"clip_id": clip_id, "camera_motion": clip.camera_motion},
                media_params={"image_url": clip.source_image_url, "duration": clip.duration},
            )
        except Exception as e:
            await self.animations.mark_clip_failed(clip_id, e.message if isinstance(e, ModoError) else str(e))
            raise

        job_id = (result.metadata or {}).get("request_id") or (result.metadata or {}).get("id")
        if job_id:
            await self.animations.update_clip(clip_id, {"job_id": str(job_id)})
        video = await self.animations.add_clip_video(clip_id, result.result_url, source="generated")
        return video, result


animation_service = AnimationService()
