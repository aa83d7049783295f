from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
import logging
from pathlib import Path
from typing import Iterable, Optional
from .config import RenderJob
from .template import Koreander

logger = logging.getLogger(__name__)


def trigger_rerender(jobs: Iterable[RenderJob], koreander: Optional[Koreander] = None):
    koreander = koreander or Koreander()
    for job in jobs:
        context = job.make_context()
        template = koreander.compile(job.src, type(context))
        html = template.render(context)
        job.dst.parent.mkdir(parents=True, exist_ok=True)
        with open(job.dst, "w+", encoding="utf-8") as f:
            f.write(html)
        logger.info("Rendered %s -> %s", job.src, job.dst)


class ChangeHandler(FileSystemEventHandler):
    def __init__(self, files_to_watch, jobs):
        self.files_to_watch = {x.resolve() for x in files_to_watch} # Set of absolute paths (templates + watched)
        self.jobs = jobs
        self.koreander = Koreander()
        logger.info("Handler initialized. Monitoring for changes...")

    def on_modified(self, event):
        if event.is_directory:
            return

        # Resolve path and check if it's one we care about
        src_path_abs = Path(event.src_path).resolve()
        if src_path_abs in self.files_to_watch:
            logger.info("Detected modification in: %s", src_path_abs)
            try:
                trigger_rerender(self.jobs, self.koreander)
            except Exception:
                # keep watching, the next save may fix it
                logger.exception("Re-render failed")


def run_watcher(jobs, watch_paths):
    """Sets up and runs the watchdog observer."""
    files_to_watch = {job.src for job in jobs} | set(watch_paths)
    dirs_to_watch = {p.parent for p in files_to_watch}

    if not dirs_to_watch:
        logger.error("No valid directories provided to watch.")
        return

    event_handler = ChangeHandler(files_to_watch, jobs)
    observer = Observer()

    scheduled_count = 0
    for dir_path in dirs_to_watch:
        if not dir_path.is_dir():
            logger.warning("Directory '%s' does not exist. Cannot watch.", dir_path)
            continue

        # recursive=False: only events directly within this directory
        observer.schedule(event_handler, str(dir_path), recursive=False)
        scheduled_count += 1
        logger.info("Scheduled watcher for directory: %s", dir_path)

    if scheduled_count == 0:
        logger.error("No watchers were successfully scheduled. Exiting.")
        return

    observer.start()
    print(f"\nWatching for file changes in {scheduled_count} director{'y' if scheduled_count == 1 else 'ies'}. Press Ctrl+C to stop.")

    try:
        while observer.is_alive():
            observer.join(timeout=1)
    except KeyboardInterrupt:
        print("\nStopping watcher (Ctrl+C pressed)...")
    finally:
        if observer.is_alive():
            observer.stop()
        observer.join()
        print("Watcher stopped completely.")
