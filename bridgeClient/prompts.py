"""Framing for documents forwarded into a conversation.

Text extraction happens elsewhere. These helpers only wrap the extracted text
the way the upload routes hand it to ``process_query``.
"""


def csv_prompt(csv_text: str) -> str:
    return (
        "Here is a CSV file. This is the CSV file you will pass into extract-company data. "
        f"\n\n{csv_text}"
    )


def pdf_prompt(extracted_text: str) -> str:
    return (
        "Here is a PDF file. Please use this information as context to create your "
        f"presentation wireframe: \n\n{extracted_text}"
    )
