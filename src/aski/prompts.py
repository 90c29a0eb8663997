# aski: Prompt and template text shipped in aski/resources, loaded through importlib.resources.

from importlib import resources


def get_prompt(name: str) -> str:
    """Load a text resource from the aski package, verbatim."""
    return resources.files("aski").joinpath("resources").joinpath(name).read_text(encoding="utf-8")
