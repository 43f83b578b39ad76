import re
from pathlib import Path

from setuptools import find_packages, setup

ROOT_FOLDER = Path(__file__).parent.absolute()
REQUIREMENTS_FOLDER = ROOT_FOLDER / "requirements"

# The version is read from the file, importing `warden` would need its requirements installed.
with open(ROOT_FOLDER / "warden" / "_version.py", encoding="utf-8") as fp:
    version = re.search(r'^__version__ = "([^"]+)"', fp.read(), re.MULTILINE).group(1)


def get_requirements(fp):
    return [
        line.strip()
        for line in fp.read().splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def extras_combined(*extra_names):
    return list(
        {
            req
            for extra_name, extra_reqs in extras_require.items()
            if not extra_names or extra_name in extra_names
            for req in extra_reqs
        }
    )


with open(REQUIREMENTS_FOLDER / "base.txt", encoding="utf-8") as fp:
    install_requires = get_requirements(fp)

extras_require = {}
for file in REQUIREMENTS_FOLDER.glob("extra-*.txt"):
    with file.open(encoding="utf-8") as fp:
        extras_require[file.stem[len("extra-") :]] = get_requirements(fp)

extras_require["dev"] = extras_combined()


setup(
    name="warden",
    version=version,
    description="Command authorization for Discord bots",
    python_requires=">=3.8.1",
    install_requires=install_requires,
    extras_require=extras_require,
    packages=find_packages(include=["warden", "warden.*"]),
    entry_points={"console_scripts": ["warden=warden.__main__:main"]},
)
