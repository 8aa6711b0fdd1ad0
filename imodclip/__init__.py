# exports
from imodclip import logging, util
from imodclip.formats import asc, gen, idf, ipf
from imodclip.clip import ClipEngine, EmptyFileMethod, FileKind, RunStatistics
from imodclip.extent import Extent
from imodclip.settings import ClipSettings
from imodclip.walker import DirectoryWalker

__version__ = "0.1.0"
