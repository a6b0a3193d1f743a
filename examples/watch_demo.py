#!/usr/bin/env python3
"""
Demonstration of versioned paths, labels, and watching for changes.
"""

import asyncio

from attachfs import AFileSystem, DirectoryNode, VFile


def synthesize_report(filesystem, path, name, version, rest, tree):
    """Create report files on first lookup."""
    return [VFile(name, f"Report {name} generated for {path}")]


async def watcher(fs):
    """Print each new version of /data/table as it is added."""
    async for file in fs.watch("/data/table"):
        rows = await file.csv(typed=True)
        print(f"  watch: {len(rows)} row(s), total count {sum(row['count'] for row in rows)}")
        if len(rows) >= 3:
            return


async def main():
    """Run demo of the virtual filesystem."""
    fs = AFileSystem({
        "data": {"table": [VFile("table", "name,count\nalpha,1\n")]},
        "reports": DirectoryNode(file_synthesizer=synthesize_report),
    }, name="Demo")

    print("Watching /data/table...")
    task = asyncio.ensure_future(watcher(fs))
    await asyncio.sleep(0)

    await fs.add("/data/table", VFile("table", "name,count\nalpha,1\nbeta,2\n"))
    await asyncio.sleep(0)
    await fs.label("/data/table", "reviewed")
    await asyncio.sleep(0)
    await fs.add("/data/table", VFile("table", "name,count\nalpha,1\nbeta,2\ngamma,3\n"))
    await task

    print("\nVersions:")
    for path in ("/data/table@1", "/data/table@reviewed", "/data/table", "/data/table@9"):
        print(f"  {path}: {await fs.find(path).text()!r}")

    print("\nSynthesized entry:")
    print(f"  {await fs.find('/reports/weekly').text()}")

    print("\nMetadata:")
    print(f"  {await fs.metadata('/data/table@reviewed')}")


if __name__ == "__main__":
    asyncio.run(main())
