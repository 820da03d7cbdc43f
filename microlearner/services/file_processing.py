import io
from typing import Callable, Dict, Optional

import docx
import fitz  # PyMuPDF
import markdown
from bs4 import BeautifulSoup


class ParseError(Exception):
    """Base class for failures turning an upload into plain text."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnsupportedFormat(ParseError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file type: .{extension}")


class CorruptFile(ParseError):
    pass


class ExtractorUnavailable(ParseError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"No parser is configured for .{extension} files.")


# Extract text from plain text

def extract_text_from_txt(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CorruptFile("Could not read the text file. It must be UTF-8 encoded.") from e

# Extract text from PDF

def extract_text_from_pdf(data: bytes) -> str:
    text = ""
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            if doc.needs_pass:
                raise CorruptFile("Could not parse the PDF file. It may be corrupted or password-protected.")
            for page in doc:
                text += page.get_text() + "\n"
    except CorruptFile:
        raise
    except Exception as e:
        print(f"Error parsing PDF: {e}")
        raise CorruptFile("Could not parse the PDF file. It may be corrupted or password-protected.") from e
    return text

# Extract text from DOCX

def extract_text_from_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        print(f"Error parsing DOCX: {e}")
        raise CorruptFile("Could not parse the DOCX file. It may be corrupted.") from e
    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            cells = []
            seen = []
            for cell in row.cells:
                # a merged cell is returned once per grid column it spans
                if cell._tc in seen:
                    continue
                seen.append(cell._tc)
                cells.append(cell.text)
            lines.append("\t".join(cells))
    return "\n".join(lines)

# Extract text from Markdown by rendering to HTML and stripping the tags

def extract_text_from_markdown(data: bytes) -> str:
    try:
        html = markdown.markdown(data.decode("utf-8-sig"))
    except Exception as e:
        print(f"Error parsing MD: {e}")
        raise CorruptFile("Could not parse the Markdown file.") from e
    return BeautifulSoup(html, "html.parser").get_text()


Extractor = Callable[[bytes], str]

DEFAULT_EXTRACTORS: Dict[str, Extractor] = {
    "txt": extract_text_from_txt,
    "pdf": extract_text_from_pdf,
    "docx": extract_text_from_docx,
    "md": extract_text_from_markdown,
}


def file_extension(filename: str) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def check_supported(filename: str, extractors: Optional[Dict[str, Extractor]] = None) -> str:
    """Return the lower-cased extension, or raise UnsupportedFormat."""
    extension = file_extension(filename)
    if extension not in DEFAULT_EXTRACTORS:
        raise UnsupportedFormat(extension)
    if extractors is not None and extension not in extractors:
        raise ExtractorUnavailable(extension)
    return extension

# Main dispatcher

def extract_text(filename: str, data: bytes, extractors: Optional[Dict[str, Extractor]] = None) -> str:
    """
    Turn an uploaded file into plain text. Either the full text is returned or a
    ParseError is raised; nothing partial is ever handed back.
    """
    if extractors is None:
        extractors = DEFAULT_EXTRACTORS
    extension = check_supported(filename, extractors)
    text = extractors[extension](data)
    if not text or not text.strip():
        raise CorruptFile("No text could be extracted from the file")
    return text
