# imgfun

A small interactive BMP image editor with a Python API behind it. It
handles two kinds of uncompressed BMP file:

- **8-bit grayscale** images with a 256-entry palette (`imgfun.bmp8`)
- **24-bit colour** images (`imgfun.bmp24`)

Available operations are negative, brightness, threshold (8-bit only),
grayscale (24-bit only), box blur, Gaussian blur, outline, emboss,
sharpen and histogram equalization. On 24-bit images the equalization
works on the luminance in YUV space.

## Installation

```
pip install .
```

No dependencies outside the standard library. Tests need `pytest`
(`pip install .[test]`).

## Command line

```
imgfun
```

This opens a menu-driven session on standard input and output:

1. Open image: asks for a path, reads the bit depth from the header and
   loads the file as an 8-bit or a 24-bit image
2. Save image: asks for an output path and writes the current image
3. Apply filter: opens the filter menu for the loaded image type
4. Image info: shows width, height and colour depth
5. Quit

Changes are held in memory; use **Save image** to write them to a file.
The session also ends when input runs out.

## Library use

```python
from imgfun.bmp8 import Bmp8Image, compute_cdf
from imgfun.bmp24 import Bmp24Image, Pixel

gray = Bmp8Image.load("gray.bmp")
gray.brightness(40)
gray.threshold(128)          # values >= 128 become 255, the rest 0
gray.save("gray_bw.bmp")
print(gray.info())

gray = Bmp8Image.load("gray.bmp")
lut = gray.equalize(compute_cdf(gray.histogram()))   # returns the applied table

colour = Bmp24Image.load("flowers.bmp")
colour.gaussian_blur()
colour.sharpen()
colour.equalize()
colour.save("flowers_out.bmp")

blank = Bmp24Image.blank(4, 2)   # black image, rows top first
blank.data[0][0] = Pixel(255, 0, 0)
encoded = blank.to_bytes()
```

### 8-bit images

`Bmp8Image` keeps the 54-byte header, the 1024-byte palette and the pixel
bytes as they are stored in the file, so saving writes them back
unchanged apart from the pixel edits. `width`, `height` and `color_depth`
are read from the header; `data_size` is the number of pixel bytes.
Convolution filters treat the first `width × height` bytes as the image
and round results to the nearest value.

`histogram()` counts each byte value; `compute_cdf()` turns a 256-entry
histogram into its cumulative sum.

### 24-bit images

`Bmp24Image` holds `width`, `height`, `color_depth` and `data`, a list of
rows (top row first) of immutable `Pixel(red, green, blue)` values.
`convolution(x, y, kernel)` returns one filtered pixel,
`histogram_red()`, `histogram_green()` and `histogram_blue()` count
channel values, and `compute_equalization_lut(hist, total)` builds an
equalization table from a histogram. Convolution results are truncated
toward zero.

### Kernels and errors

`apply_filter` accepts any square kernel with an odd size, given as rows
of numbers. Pixels outside the image are skipped and results are clamped
to 0–255; a kernel of the wrong shape raises `ValueError`.

Reading a file that is missing, truncated or not in the expected format,
or failing to write one, raises `imgfun.bmp8.BmpError`.
`imgfun.cli.detect_bit_depth(path)` returns 8 or 24 and raises the same
error for any other depth.

## Limitations

Only uncompressed 8-bit and 24-bit BMP files are read. 24-bit images
with a negative (top-down) height are rejected, and other bit depths,
compressed files and other image formats are not supported.