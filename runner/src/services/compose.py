"""
Docker Compose command builder.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

Command = Tuple[str, ...]

@dataclass(frozen=True)
class ComposeCommand:
    """
    Assembles ``docker compose`` argument lists from typed options.
    Every method returns a new immutable tuple.
    """

    compose_file: str = "docker-compose.yml"
    project_name: Optional[str] = None
    env_file: Optional[str] = None
    profiles: Tuple[str, ...] = ()

    def base(self) -> Command:
        args = ["docker", "compose", "-f", self.compose_file]
        if self.project_name:
            args += ["-p", self.project_name]
        if self.env_file:
            args += ["--env-file", self.env_file]
        for profile in self.profiles:
            args += ["--profile", profile]
        return tuple(args)

    def version(self) -> Command:
        return ("docker", "compose", "version")

    def config(self, quiet: bool = True) -> Command:
        return self.base() + ("config",) + (("--quiet",) if quiet else ())

    def pull(self, ignore_buildable: bool = True, services: Sequence[str] = ()) -> Command:
        args = ["pull"]
        if ignore_buildable:
            args.append("--ignore-buildable")
        return self.base() + tuple(args) + tuple(services)

    def build(self, no_cache: bool = False, pull: bool = False, services: Sequence[str] = ()) -> Command:
        args = ["build"]
        if no_cache:
            args.append("--no-cache")
        if pull:
            args.append("--pull")
        return self.base() + tuple(args) + tuple(services)

    def up(
        self,
        detach: bool = True,
        build: bool = False,
        force_recreate: bool = False,
        remove_orphans: bool = True,
        wait: bool = False,
        services: Sequence[str] = (),
    ) -> Command:
        args = ["up"]
        if detach:
            args.append("-d")
        if build:
            args.append("--build")
        if force_recreate:
            args.append("--force-recreate")
        if remove_orphans:
            args.append("--remove-orphans")
        if wait:
            args.append("--wait")
        return self.base() + tuple(args) + tuple(services)

    def down(self, remove_orphans: bool = True, volumes: bool = False) -> Command:
        args = ["down"]
        if remove_orphans:
            args.append("--remove-orphans")
        if volumes:
            args.append("--volumes")
        return self.base() + tuple(args)

    def ps(self, all: bool = False, status: Optional[str] = None, services_only: bool = False) -> Command:
        args = ["ps"]
        if all:
            args.append("--all")
        if status:
            args += ["--status", status]
        if services_only:
            args.append("--services")
        return self.base() + tuple(args)

    def logs(self, tail: Optional[int] = 100, timestamps: bool = False, services: Sequence[str] = ()) -> Command:
        args = ["logs", "--no-color"]
        if tail is not None:
            args += ["--tail", str(tail)]
        if timestamps:
            args.append("--timestamps")
        return self.base() + tuple(args) + tuple(services)

def prune_images_command(until: Optional[str] = None) -> Command:
    """``docker image prune`` for dangling images, optionally older than ``until`` (e.g. ``24h``)."""
    args = ["docker", "image", "prune", "-f"]
    if until:
        args += ["--filter", f"until={until}"]
    return tuple(args)
