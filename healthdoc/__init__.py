"""healthdoc: control de acceso por documento y ciclo de vida de OCR."""
