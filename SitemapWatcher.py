################################################################
# Routes file-system events to the sitemaps they affect.
# SitemapEventDispatcher decides which auto-updating sitemaps care
# about a changed file and calls the matching SitemapGenerator
# operation. SitemapWatcher feeds it from a watchdog observer and
# reloads the settings snapshot when the settings file is saved.
################################################################

from pathlib import Path
from typing import Callable, Dict, List, Optional
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from SitemapGenerator import SitemapGenerator
from TreeScanner import TreeScanner
from sitemap_config import SitemapSettings, is_settings_file, load_settings
from logger_config import get_logger

logger = get_logger(__name__)

class SitemapEventDispatcher:
    def __init__(self, generator: SitemapGenerator, settings: Dict[str, SitemapSettings]):
        self.generator = generator
        self.settings = settings

    def refresh(self, settings: Dict[str, SitemapSettings]):
        """Swap in a freshly loaded settings snapshot."""
        self.settings = settings

    def auto_update_sitemaps(self) -> List[str]:
        return [sitemap for sitemap, settings in self.settings.items() if settings.automatically_update_sitemap]

    def in_scope(self, sitemap: str, file_path) -> bool:
        """Whether a change to file_path should update the sitemap."""
        path = Path(file_path)
        if path.is_absolute() and path.resolve() == self.generator.sitemap_path(sitemap).resolve():
            return False
        scanner = TreeScanner(self.generator.workspace_root, self.settings[sitemap])
        return scanner.relative_source_path(file_path) is not None

    def _add_or_update(self, sitemap: str, file_path):
        # editors that save by renaming a temp file over the page report a new file
        settings = self.settings[sitemap]
        if self.generator.has_entry(sitemap, settings, file_path):
            self.generator.on_file_saved(sitemap, settings, file_path)
        else:
            self.generator.on_file_added(sitemap, settings, file_path)

    def file_created(self, file_path):
        for sitemap in self.auto_update_sitemaps():
            if self.in_scope(sitemap, file_path):
                self._add_or_update(sitemap, file_path)

    def file_saved(self, file_path):
        for sitemap in self.auto_update_sitemaps():
            if self.in_scope(sitemap, file_path):
                self.generator.on_file_saved(sitemap, self.settings[sitemap], file_path)

    def file_deleted(self, file_path):
        for sitemap in self.auto_update_sitemaps():
            if self.in_scope(sitemap, file_path):
                self.generator.on_file_removed(sitemap, self.settings[sitemap], file_path)

    def file_renamed(self, old_file_path, new_file_path):
        for sitemap in self.auto_update_sitemaps():
            settings = self.settings[sitemap]
            old_in_scope = self.in_scope(sitemap, old_file_path)
            new_in_scope = self.in_scope(sitemap, new_file_path)

            if old_in_scope and new_in_scope:
                self.generator.on_file_renamed(sitemap, settings, old_file_path, new_file_path)
            elif old_in_scope:
                self.generator.on_file_removed(sitemap, settings, old_file_path)
            elif new_in_scope:
                # moved in from outside the root or from an excluded path, nothing to remove
                self._add_or_update(sitemap, new_file_path)


class _SitemapFileHandler(FileSystemEventHandler):
    """Watchdog handler forwarding file events to the dispatcher."""

    def __init__(self, watcher: "SitemapWatcher"):
        super().__init__()
        self._watcher = watcher

    def _dispatch(self, event: FileSystemEvent, action: Callable, *paths):
        if event.is_directory:
            return
        try:
            action(*paths)
        except OSError as e:
            # The event is lost; the next change or a regenerate fixes the sitemap
            logger.error(f"Failed to update sitemap for {event.event_type} {event.src_path}: {e}")

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch(event, self._watcher.dispatcher.file_created, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._dispatch(event, self._watcher.dispatcher.file_deleted, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and is_settings_file(event.src_path, self._watcher.settings_path):
            self._watcher.reload_settings()
            return
        self._dispatch(event, self._watcher.dispatcher.file_saved, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._dispatch(event, self._watcher.dispatcher.file_renamed, event.src_path, event.dest_path)


class SitemapWatcher:
    def __init__(self, dispatcher: SitemapEventDispatcher, settings_path: Path,
                 on_settings_saved: Optional[Callable[[Dict[str, SitemapSettings]], None]] = None):
        self.dispatcher = dispatcher
        self.settings_path = Path(settings_path)
        self.on_settings_saved = on_settings_saved
        self._observer: Optional[Observer] = None

    def reload_settings(self):
        settings = load_settings(self.settings_path)
        self.dispatcher.refresh(settings)
        logger.info(f"Reloaded settings for {len(settings)} sitemaps")
        if self.on_settings_saved:
            self.on_settings_saved(settings)

    def start(self):
        if self._observer is not None:
            return
        workspace_root = self.dispatcher.generator.workspace_root
        self._observer = Observer()
        self._observer.schedule(_SitemapFileHandler(self), str(workspace_root), recursive=True)
        self._observer.start()
        logger.info(f"Watching {workspace_root} for "
                    f"{len(self.dispatcher.auto_update_sitemaps())} auto-updating sitemaps")

    def stop(self):
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._observer = None
        logger.info("Stopped watching")
