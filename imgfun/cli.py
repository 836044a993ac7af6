"""Interactive menu for opening, filtering and saving BMP images."""

from __future__ import annotations

import argparse
import struct
import sys
from typing import Callable, Optional, TextIO, Union

from .bmp8 import Bmp8Image, BmpError, compute_cdf
from .bmp24 import Bmp24Image

Image = Union[Bmp8Image, Bmp24Image]
MenuEntry = tuple[str, Callable[[], None], str]

_BIT_DEPTH_OFFSET = 28


def detect_bit_depth(path) -> int:
    """Return the bit depth (8 or 24) stored in a BMP file header."""
    try:
        with open(path, "rb") as fh:
            fh.seek(_BIT_DEPTH_OFFSET)
            raw = fh.read(2)
    except OSError as exc:
        raise BmpError(f"unable to open file {path}") from exc
    if len(raw) != 2:
        raise BmpError("file is too short to hold a bit depth")
    (bits,) = struct.unpack("<H", raw)
    if bits not in (8, 24):
        raise BmpError(f"unsupported bit depth: {bits}")
    return bits


def _ask(stdin: TextIO, stdout: TextIO, prompt: str) -> str:
    """Prompt and return the stripped reply; raise EOFError when input ends."""
    stdout.write(prompt)
    stdout.flush()
    line = stdin.readline()
    if not line:
        raise EOFError
    return line.strip()


def _ask_int(stdin: TextIO, stdout: TextIO, prompt: str) -> int:
    reply = _ask(stdin, stdout, prompt).split()
    if not reply:
        raise ValueError("no number given")
    return int(reply[0])


def _ask_word(stdin: TextIO, stdout: TextIO, prompt: str) -> str:
    reply = _ask(stdin, stdout, prompt).split()
    if not reply:
        raise ValueError("no value given")
    return reply[0]


def _run_menu(
    title: str,
    entries: list[MenuEntry],
    invalid: str,
    stdin: TextIO,
    stdout: TextIO,
) -> None:
    back = len(entries) + 1
    while True:
        stdout.write(title)
        for number, (label, _, _) in enumerate(entries, 1):
            stdout.write(f"{number}. {label}\n")
        stdout.write(f"{back}. Return to menu\n")
        try:
            choice: Optional[int] = _ask_int(
                stdin, stdout, "Enter the number next to the filter you want: "
            )
        except EOFError:
            return
        except ValueError:
            choice = None
        if choice == back:
            return
        if choice is None or not 1 <= choice <= len(entries):
            stdout.write(invalid)
            continue
        _, action, done = entries[choice - 1]
        try:
            action()
        except EOFError:
            return
        except ValueError:
            stdout.write("Invalid value.\n")
            continue
        stdout.write(done + "\n")


def apply_filters8(img: Bmp8Image, stdin: TextIO = None, stdout: TextIO = None) -> None:
    """Run the filter menu for an 8-bit image until the user returns."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    def brightness() -> None:
        img.brightness(_ask_int(stdin, stdout, "Brightness value (-255 to 255): "))

    def threshold() -> None:
        img.threshold(_ask_int(stdin, stdout, "Threshold value (0 to 255): "))

    def equalize() -> None:
        img.equalize(compute_cdf(img.histogram()))

    entries: list[MenuEntry] = [
        ("Negative", img.negative, "Negative applied."),
        ("Brightness", brightness, "Brightness adjusted."),
        ("Threshold (Black and white)", threshold, "Threshold applied."),
        ("Box Blur", img.box_blur, "Box Blur applied."),
        ("Gaussian Blur", img.gaussian_blur, "Gaussian Blur applied."),
        ("Outline", img.outline, "Outline filter applied."),
        ("Emboss", img.emboss, "Emboss filter applied."),
        ("Sharpen", img.sharpen, "Sharpen filter applied."),
        ("Histogram Equalization", equalize, "Histogram Equalization applied."),
    ]
    _run_menu(
        "\nPlease select a filter (save the file and reload it to see changes):\n",
        entries,
        "Invalid option\n",
        stdin,
        stdout,
    )


def apply_filters24(img: Bmp24Image, stdin: TextIO = None, stdout: TextIO = None) -> None:
    """Run the filter menu for a 24-bit image until the user returns."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    def brightness() -> None:
        img.brightness(_ask_int(stdin, stdout, "Brightness value (-255 to 255): "))

    def equalize() -> None:
        img.equalize()

    entries: list[MenuEntry] = [
        ("Negative", img.negative, "Negative applied."),
        ("Grayscale", img.grayscale, "Grayscale applied."),
        ("Brightness", brightness, "Brightness applied."),
        ("Box Blur", img.box_blur, "Box Blur applied."),
        ("Gaussian Blur", img.gaussian_blur, "Gaussian Blur applied."),
        ("Outline", img.outline, "Outline filter applied."),
        ("Emboss", img.emboss, "Emboss filter applied."),
        ("Sharpen", img.sharpen, "Sharpen filter applied."),
        ("Histogram Equalization", equalize, "Histogram Equalization applied."),
    ]
    _run_menu(
        "\nPlease select a filter.\n",
        entries,
        "Please choose 1 to 10.\n",
        stdin,
        stdout,
    )


def _info24(img: Bmp24Image) -> str:
    return (
        "Image information:\n"
        f"Width       : {img.width} px\n"
        f"Height      : {img.height} px\n"
        f"Color depth : {img.color_depth} bits\n"
    )


def _open_image(path: str, stdout: TextIO) -> Optional[Image]:
    try:
        bits = detect_bit_depth(path)
    except BmpError as exc:
        stdout.write(f"Wrong format ({exc}). Please only use 8 or 24 bit images.\n")
        return None
    loader = Bmp8Image if bits == 8 else Bmp24Image
    try:
        image = loader.load(path)
    except BmpError as exc:
        stdout.write(f"Could not load a {bits} bit image: {exc}\n")
        return None
    stdout.write(f"{bits} bit image loaded\n")
    return image


def main(argv=None) -> int:
    """Start the interactive image editor on standard input and output."""
    parser = argparse.ArgumentParser(
        prog="imgfun", description="Interactive editor for 8 and 24 bit BMP images."
    )
    parser.parse_args(argv)
    stdin, stdout = sys.stdin, sys.stdout
    image: Optional[Image] = None
    no_image = "We need to load an image first.\n"

    while True:
        stdout.write(
            "\nWhat are we doing now?\n"
            "1. Open image\n"
            "2. Save image\n"
            "3. Apply filter\n"
            "4. Image info\n"
            "5. Quit\n"
        )
        try:
            choice = _ask_int(stdin, stdout, "Enter the number next to the action you want: ")
        except EOFError:
            return 0
        except ValueError:
            stdout.write("Please choose 1 to 5.\n")
            continue

        try:
            if choice == 1:
                path = _ask_word(stdin, stdout, "Enter file path: ")
                image = None
                image = _open_image(path, stdout)
            elif choice == 2:
                if image is None:
                    stdout.write(no_image)
                    continue
                path = _ask_word(stdin, stdout, "Name of the output image: ")
                try:
                    image.save(path)
                except BmpError as exc:
                    stdout.write(f"Save error: {exc}\n")
                else:
                    stdout.write(f"Image saved in {path}\n")
            elif choice == 3:
                if isinstance(image, Bmp8Image):
                    apply_filters8(image, stdin, stdout)
                elif isinstance(image, Bmp24Image):
                    apply_filters24(image, stdin, stdout)
                else:
                    stdout.write(no_image)
            elif choice == 4:
                if isinstance(image, Bmp8Image):
                    stdout.write(image.info())
                elif isinstance(image, Bmp24Image):
                    stdout.write(_info24(image))
                else:
                    stdout.write(no_image)
            elif choice == 5:
                stdout.write("See you!\n")
                return 0
            else:
                stdout.write("Please choose 1 to 5.\n")
        except EOFError:
            return 0
        except ValueError:
            stdout.write("Invalid value.\n")


if __name__ == "__main__":
    sys.exit(main())