"""
Show quota of every configured remote, with a custom API configuration
"""
import asyncio
from onedpy import (
    APIConfig, TimeoutConfig, OneDriveClient, OneDriveError,
    RcloneConfig, RemoteRegistry, default_config_path
)


async def main():
    config = APIConfig(timeout=TimeoutConfig(total=60.0, connect=10.0))
    rclone = RcloneConfig.load(default_config_path())

    for name in rclone.remote_names():
        registry = RemoteRegistry.from_config(rclone, names=[name])
        try:
            async with OneDriveClient(registry, name, config=config) as drive:
                quota = await drive.get_quota()
        except OneDriveError as e:
            print(f"{name}: {e}")
            continue
        print(f"{name}: {quota}")


if __name__ == "__main__":
    asyncio.run(main())
