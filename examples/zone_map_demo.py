#!/usr/bin/env python3
"""
Generate a zone map from a world description and save it as PNG.

Needs ZONEMAP_GEMINI_API_KEY in the environment or a .env file.

    python examples/zone_map_demo.py "A frozen archipelago ruled by dragon clans" map.png
"""

import asyncio
import sys

from py_zonemap.config import settings
from py_zonemap.content import GeminiContentGenerator
from py_zonemap.core import WorldSettings
from py_zonemap.generation import GenerationRun
from py_zonemap.render import MatplotlibZoneRenderer


async def main(description: str, output: str):
    renderer = MatplotlibZoneRenderer(settings.map_width, settings.map_height)

    async with GeminiContentGenerator() as generator:
        run = GenerationRun(
            WorldSettings(description=description),
            generator,
            renderer=renderer,
            on_log=lambda message: print(f"> {message}\n"),
            seed="demo",
        )
        table = await run.run()

    print(f"Placed {len(table)} zones")
    special = [zone for zone in table if zone.is_special]
    for zone in special:
        print(f"   - {zone.name} ({zone.type}) at {zone.id}")

    center = (settings.map_width / 2, settings.map_height / 2)
    zone = run.find_zone_at(center)
    if zone is not None:
        print(f"Zone at map centre: {zone.type} (elevation {zone.elevation})")

    with open(output, "wb") as f:
        f.write(renderer.to_png())
    print(f"Saved {output}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else "zone_map.png"))
