"""
Upload a file to OneDrive and check its QuickXorHash
"""
import asyncio
from onedpy import OneDriveClient, IntegrityStatus


async def main():
    # Reads ~/.config/rclone/rclone.conf (or $ONEDPY_CONFIG)
    async with OneDriveClient.from_config_file(remote_name="oned") as drive:

        # Simple upload into a folder under the remote's root folder
        report = await drive.upload("document.pdf", "Documents")
        print(f"Uploaded: {report.result.name} ({report.result.item_id})")

        # Upload with a custom name
        report = await drive.upload("photo.jpg", "Photos", "vacation_2024.jpg")
        print(f"Uploaded as: {report.result.name}")
        if report.download_url:
            print(f"Link: {report.download_url}")

        # Check the integrity outcome
        if report.verification.status is IntegrityStatus.MISMATCH:
            print(f"Hash mismatch: {report.verification.local_hash} != {report.verification.remote_hash}")
        else:
            print(f"Integrity: {report.verification.status.value}")


if __name__ == "__main__":
    asyncio.run(main())
