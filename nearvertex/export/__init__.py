from .exporter import ContactExporter
