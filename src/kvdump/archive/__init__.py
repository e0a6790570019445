from .sink import ArchiveSink, DirectorySink, TarSink, ZipSink
