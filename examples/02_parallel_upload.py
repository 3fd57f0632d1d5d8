"""
Large uploads - parallel chunks, progress and cancellation
"""
import asyncio
from onedpy import OneDriveClient, UploadCancelledError

MIB = 1024 * 1024


async def main():
    cancel = asyncio.Event()

    def on_progress(progress):
        print(f"Progress: {progress.percentage:.1f}% ({progress.uploaded_chunks}/{progress.total_chunks})")

    async with OneDriveClient.from_config_file(remote_name="oned") as drive:
        # Cancel after ten minutes
        asyncio.get_running_loop().call_later(600, cancel.set)
        try:
            report = await drive.upload(
                "backup.tar",
                "Backups",
                chunk_size=20 * MIB,
                parallelism=4,
                max_retries=5,
                retry_delay=2.0,
                cancel_event=cancel,
                progress_callback=on_progress
            )
        except UploadCancelledError:
            print("Upload cancelled")
            return

        print(f"{report.result.chunk_count} chunks, {report.result.attempts} attempts")


if __name__ == "__main__":
    asyncio.run(main())
