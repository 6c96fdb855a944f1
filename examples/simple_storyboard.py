#!/usr/bin/env python3
"""
Simple Storyboard Example
=========================

Generate a storyboard from a one-line idea and save it as a project.
"""

import asyncio
import logging
import os

from creative_studio import (
    GenerationFacade,
    Project,
    ProjectStore,
    StoryboardConfig,
    StoryboardPipeline,
    get_config,
)
from creative_studio.workflow import AppMode

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def show_progress(panels):
    done = sum(1 for p in panels if not p.is_loading_image)
    print(f"  {done}/{len(panels)} panels ready")


async def main():
    """Storyboard generation example."""

    if not os.getenv("GOOGLE_API_KEY"):
        print("Please set GOOGLE_API_KEY environment variable")
        print("Get your key at: https://aistudio.google.com/")
        return

    config = StoryboardConfig(
        scene_count=4,
        aspect_ratio="16:9",
        visual_style="cinematic",
        mood="mysterious and suspenseful",
    )
    idea = "A lighthouse keeper finds a message in a bottle that glows at night"

    print("=== Simple Storyboard ===")
    print(f"Idea: {idea}")
    print(f"Scenes: {config.scene_count}")
    print("\nGenerating storyboard...")

    async with GenerationFacade() as facade:
        pipeline = StoryboardPipeline(facade, on_update=show_progress)
        panels = await pipeline.generate(idea, config)

        for i, panel in enumerate(panels, 1):
            print(f"\nScene {i} [{panel.image_state.value}]")
            print(f"  {panel.description}")

    project = Project.create(
        AppMode.STORYBOARD,
        title="Lighthouse",
        story_idea=idea,
        storyboard_config=config,
        storyboard_panels=panels,
    )
    store = ProjectStore(get_config().storage.resolve("db_path"))
    store.save(project)
    print(f"\nSaved project {project.id}")


if __name__ == "__main__":
    asyncio.run(main())
