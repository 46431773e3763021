import sys
import time
from pathlib import Path
from typing import Optional
from tqdm import tqdm
from ArgumentHandler import ArgumentHandler, ConsoleHost
from SitemapGenerator import SitemapGenerator
from SitemapWatcher import SitemapEventDispatcher, SitemapWatcher
from errors import AmbiguousSelectionError, ConfigParseError, SitemapNotFoundError
from sitemap_config import get_sitemap_settings, load_settings, select_sitemap, set_sitemap_setting
from logger_config import get_logger

logger = get_logger(__name__)

class MainApp:
    def __init__(self, args, host: Optional[ConsoleHost] = None):
        self.args = args
        self.host = host or ConsoleHost()
        self.workspace = Path(args.workspace).resolve()
        self.settings_path = Path(args.settings)
        self.settings = load_settings(self.settings_path)
        self.generator = SitemapGenerator(self.workspace)

    def run(self) -> int:
        command = self.args.command
        if command == 'new':
            return 0 if self.new_sitemap() else 1
        if command == 'regenerate':
            if self.args.all:
                return self.regenerate_all()
            return 0 if self.regenerate_sitemap(self.args.sitemap) else 1
        if command == 'watch':
            return self.watch()
        return self.apply_event(self.args.kind, self.args.paths)

    def new_sitemap(self) -> bool:
        """Ask for the website root, protocol and domain, then generate a sitemap."""
        root = self.host.ask("Website root (relative to the workspace)", "./")
        protocol = self.host.prompt("Select a protocol", ["http", "https"])
        if not protocol:
            return False
        domain_name = self.host.ask('Domain name, like "example.com"')
        if not domain_name:
            return False

        sitemap_path = (self.workspace / root / "sitemap.xml").resolve()
        if sitemap_path.exists():
            selection = self.host.prompt(
                f"Sitemap already exists:\n{sitemap_path}\nWould you like to overwrite it?",
                ["Overwrite", "Abort"],
            )
            if selection != "Overwrite":
                return False

        sitemap = sitemap_path.relative_to(self.workspace).as_posix()
        try:
            set_sitemap_setting(self.settings_path, sitemap, Root=root, Protocol=protocol, DomainName=domain_name)
        except ConfigParseError as e:
            logger.error(f"Not overwriting unreadable settings: {e}")
            return False
        self.settings = load_settings(self.settings_path)

        try:
            self.generator.generate_sitemap(sitemap, self.settings[sitemap])
        except OSError as e:
            logger.error(f"Failed to generate {sitemap}: {e}")
            return False
        self.host.open_file(sitemap_path)
        return True

    def regenerate_sitemap(self, sitemap: Optional[str] = None) -> bool:
        try:
            sitemap = select_sitemap(self.settings, sitemap)
        except AmbiguousSelectionError as e:
            sitemap = self.host.prompt("Which sitemap should be regenerated?", e.candidates)
            if not sitemap:
                return False
        except SitemapNotFoundError as e:
            logger.error(str(e))
            if self.host.prompt("No sitemap found, would you like to create a new one?", ["Yes", "No"]) == "Yes":
                return self.new_sitemap()
            return False

        try:
            path = self.generator.generate_sitemap(sitemap, get_sitemap_settings(sitemap, self.settings))
        except OSError as e:
            logger.error(f"Failed to regenerate {sitemap}: {e}")
            return False

        if self.host.prompt(f"{sitemap} has been updated.", ["Open"]) == "Open":
            self.host.open_file(path)
        return True

    def regenerate_all(self) -> int:
        failed = 0
        for sitemap, settings in tqdm(self.settings.items(), total=len(self.settings), desc="Sitemaps"):
            try:
                self.generator.generate_sitemap(sitemap, settings)
            except OSError as e:
                logger.error(f"Failed to regenerate {sitemap}: {e}")
                failed += 1
        return 1 if failed else 0

    def apply_event(self, kind: str, paths) -> int:
        dispatcher = SitemapEventDispatcher(self.generator, self.settings)
        paths = [str(Path(path).resolve()) for path in paths]
        try:
            if kind == 'created':
                dispatcher.file_created(paths[0])
            elif kind == 'deleted':
                dispatcher.file_deleted(paths[0])
            elif kind == 'saved':
                dispatcher.file_saved(paths[0])
            else:
                dispatcher.file_renamed(paths[0], paths[1])
        except OSError as e:
            logger.error(f"Failed to apply {kind} event: {e}")
            return 1
        return 0

    def on_settings_saved(self, settings):
        self.settings = settings
        selection = self.host.prompt(
            "Settings have been updated, would you like to re-generate the sitemap?",
            ["Re-Generate", "Abort"],
        )
        if selection == "Re-Generate":
            self.regenerate_sitemap()

    def watch(self) -> int:
        dispatcher = SitemapEventDispatcher(self.generator, self.settings)
        watcher = SitemapWatcher(dispatcher, self.settings_path, on_settings_saved=self.on_settings_saved)
        watcher.start()
        print(f"Watching {self.workspace} (Ctrl+C to stop)")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            pass
        finally:
            watcher.stop()
        return 0

def main(argv=None) -> int:
    args = ArgumentHandler.parse_arguments(argv)
    return MainApp(args).run()

if __name__ == "__main__":
    sys.exit(main())
