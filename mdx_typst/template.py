"""Typst book template and main document preamble."""

from __future__ import annotations

from .models import DocumentMetadata
from .utils import typst_string

TEMPLATE_ENTRYPOINT = "book"

TYPST_TEMPLATE = """#let book(
  title: "My Ebook",
  author: "Author",
  body
) = {
  set document(title: title, author: author)
  set page(
    paper: "a5",
    margin: (inside: 2.5cm, outside: 1.5cm, y: 2cm),
    numbering: "1",
  )
  set text(
    font: "Linux Libertine",
    size: 11pt,
    lang: "en"
  )
  set par(
    justify: true,
    leading: 0.8em,
    first-line-indent: 1.2em,
    spacing: 0.8em
  )

  // Headings
  show heading.where(level: 1): it => {
    pagebreak(weak: true)
    v(15%)
    align(center)[
      #text(size: 24pt, weight: "bold", it.body)
    ]
    v(5%)
  }

  show heading.where(level: 2): it => {
    v(1.5em)
    text(size: 14pt, weight: "bold", it.body)
    v(0.75em)
  }

  show heading.where(level: 3): it => {
    v(1em)
    text(size: 12pt, weight: "bold", style: "italic", it.body)
    v(0.5em)
  }

  // Figures
  show figure: it => {
    v(1em)
    align(center)[
      #it.body
      #if it.has("caption") and it.caption != none [
        #v(0.5em)
        #text(size: 9pt, style: "italic", it.caption)
      ]
    ]
    v(1em)
  }

  // Block quotes
  show quote: it => {
    pad(x: 1em, y: 0.5em)[
      #set text(style: "italic")
      #it.body
    ]
  }

  body
}
"""


def compose_main_document(
    body: str,
    metadata: DocumentMetadata,
    template_filename: str = "template.typ",
) -> str:
    """Wrap the converted body in a preamble that applies the book template."""
    preamble_lines = [
        f'#import "{typst_string(template_filename)}": {TEMPLATE_ENTRYPOINT}',
        "",
        f"#show: doc => {TEMPLATE_ENTRYPOINT}(",
        f'  title: "{typst_string(metadata.title)}",',
        f'  author: "{typst_string(metadata.author)}",',
        "  doc",
        ")",
        "",
    ]
    return "\n".join(preamble_lines) + "\n" + body.strip("\n") + "\n"
