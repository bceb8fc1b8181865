"""Target platforms used to scope manifest entries."""

import platform as _platform
import sys
from enum import Enum


class Platform(str, Enum):
    """Operating system and architecture combination."""

    NOARCH = "noarch"
    LINUX_32 = "linux-32"
    LINUX_64 = "linux-64"
    LINUX_AARCH64 = "linux-aarch64"
    LINUX_PPC64LE = "linux-ppc64le"
    LINUX_S390X = "linux-s390x"
    OSX_64 = "osx-64"
    OSX_ARM64 = "osx-arm64"
    WIN_32 = "win-32"
    WIN_64 = "win-64"
    WIN_ARM64 = "win-arm64"

    def __str__(self) -> str:
        return self.value

    @property
    def is_linux(self) -> bool:
        return self.value.startswith("linux-")

    @property
    def is_osx(self) -> bool:
        return self.value.startswith("osx-")

    @property
    def is_windows(self) -> bool:
        return self.value.startswith("win-")

    @classmethod
    def parse(cls, value: str) -> "Platform":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"'{value}' is not a known platform") from None

    @classmethod
    def current(cls) -> "Platform":
        """Detect the platform of the running interpreter."""
        machine = _platform.machine().lower()
        is_64bit = sys.maxsize > 2**32

        if sys.platform.startswith("linux"):
            if machine in ("aarch64", "arm64"):
                return cls.LINUX_AARCH64
            if machine == "ppc64le":
                return cls.LINUX_PPC64LE
            if machine == "s390x":
                return cls.LINUX_S390X
            return cls.LINUX_64 if is_64bit else cls.LINUX_32

        if sys.platform == "darwin":
            return cls.OSX_ARM64 if machine == "arm64" else cls.OSX_64

        if sys.platform in ("win32", "cygwin"):
            if machine == "arm64":
                return cls.WIN_ARM64
            return cls.WIN_64 if is_64bit else cls.WIN_32

        return cls.NOARCH


PLATFORM_NAMES = [p.value for p in Platform]
