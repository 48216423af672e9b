"""Locale-specific user-facing strings.

Progress messages, fallback narratives, and the language the extraction
service is asked to answer in. Croatian is the default because the record
source and its readers are Croatian; English exists for development and
tests.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Messages:
    """All strings a pipeline run may show to a user."""

    language: str
    queued: str
    starting: str
    scraping: str
    processing_setup: str
    processing_case: str
    downloading: str
    unzipping: str
    analyzing: str
    document_analyzed: str
    document_failed: str
    comparing: str
    complete: str
    no_filings: str
    no_documents: str
    no_data: str
    no_successful_analysis: str
    synthesis_failed: str
    generic_error: str


CROATIAN = Messages(
    language="Croatian",
    queued="Vaš zahtjev je zaprimljen i čeka na obradu...",
    starting="Vaš zahtjev je započeo s obradom...",
    scraping="Pretražujem sudske zapise za nedavne objave...",
    processing_setup="Pronađeno {count} objava za analizu.",
    processing_case="Obrađujem objavu {index} od {total}: {title}",
    downloading="Preuzimam arhivu za objavu {index}...",
    unzipping="Raspakiram datoteke za objavu {index}...",
    analyzing="Analiziram {count} datoteka za objavu {index}...",
    document_analyzed="Analizirano: {name}",
    document_failed="Analiza nije uspjela: {name}",
    comparing="Generiram usporednu analizu i zaključak...",
    complete="Analiza je završena!",
    no_filings="Nije pronađen nijedan predmet s dostupnim dokumentima za traženi pojam.",
    no_documents="Nema dokumenata za analizu.",
    no_data="Nema podataka za analizu.",
    no_successful_analysis="Nijedan dokument nije uspješno analiziran.",
    synthesis_failed="Zaključak trenutno nije moguće generirati. Pojedinačne analize dokumenata dostupne su iznad.",
    generic_error="Došlo je do greške u obradi.",
)

ENGLISH = Messages(
    language="English",
    queued="Your request has been received and is waiting in the queue...",
    starting="Your request is now being processed...",
    scraping="Searching court records for recent notices...",
    processing_setup="Found {count} notices to analyse.",
    processing_case="Processing notice {index} of {total}: {title}",
    downloading="Downloading attachments for notice {index}...",
    unzipping="Unpacking files for notice {index}...",
    analyzing="Analysing {count} files for notice {index}...",
    document_analyzed="Analysed: {name}",
    document_failed="Failed to analyse: {name}",
    comparing="Generating the comparative analysis and conclusion...",
    complete="Analysis complete!",
    no_filings="No case with downloadable documents was found for this query.",
    no_documents="No documents to analyse.",
    no_data="No data to analyse.",
    no_successful_analysis="No document could be analysed successfully.",
    synthesis_failed="The conclusion could not be generated. The individual document analyses are listed above.",
    generic_error="An error occurred while processing your request.",
)

_MESSAGES = {"hr": CROATIAN, "en": ENGLISH}


def get_messages(locale: str) -> Messages:
    """Return messages for ``locale`` ("hr", "en"), defaulting to Croatian."""
    return _MESSAGES.get(locale.lower().split("-")[0], CROATIAN)
