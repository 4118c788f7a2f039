"""Command-line option parsing for the transmitter."""

from __future__ import annotations

import getopt
import re
import sys
from dataclasses import dataclass, field

from .filesink import SampleType


class OptionsError(ValueError):
    """Raised when the command line cannot be accepted."""


@dataclass
class Options:
    """Settings gathered from the command line."""

    output_type: str = "hackrf"
    output: str | None = None
    mode: str = "i"
    samplerate: int = 16000000
    pixelrate: int = 0
    level: float = 1.0
    deviation: float = -1.0
    gamma: float = -1.0
    interlace: bool = False
    repeat: bool = False
    verbose: bool = False
    teletext: str | None = None
    wss: str | None = None
    videocrypt: str | None = None
    videocrypt2: str | None = None
    videocrypts: str | None = None
    syster: bool = False
    systeraudio: bool = False
    eurocrypt: str | None = None
    acp: bool = False
    vits: bool = False
    filter: bool = False
    nocolour: bool = False
    noaudio: bool = False
    nonicam: bool = False
    a2stereo: bool = False
    scramble_video: int = 0
    scramble_audio: bool = False
    chid: int = -1
    offset: int = 0
    passthru: str | None = None
    frequency: int = 0
    amp: bool = False
    gain: int = 0
    antenna: str | None = None
    file_type: SampleType = SampleType.INT16
    inputs: list[str] = field(default_factory=list)
    show_usage: bool = False


_SHORT_OPTS = "o:m:s:D:G:irvf:al:g:A:t:"

_LONG_OPTS = [
    "output=", "mode=", "samplerate=", "pixelrate=", "level=", "deviation=",
    "gamma=", "interlace", "repeat", "verbose", "teletext=", "wss=",
    "videocrypt=", "videocrypt2=", "videocrypts=", "syster", "systeraudio",
    "acp", "vits", "filter", "nocolour", "nocolor", "noaudio", "nonicam",
    "a2stereo", "single-cut", "double-cut", "eurocrypt=", "scramble-audio",
    "chid=", "offset=", "passthru=", "frequency=", "amp", "gain=", "antenna=",
    "type=",
]

_FILE_TYPES = {
    "uint8": SampleType.UINT8,
    "int8": SampleType.INT8,
    "uint16": SampleType.UINT16,
    "int16": SampleType.INT16,
    "int32": SampleType.INT32,
    "float": SampleType.FLOAT,
}

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_HEX_RE = re.compile(r"\s*([+-]?)0[xX]([0-9a-fA-F]+)")
_OCT_RE = re.compile(r"\s*([+-]?)0([0-7]*)")
_DEC_RE = re.compile(r"\s*([+-]?)([1-9]\d*)")


def _atoi(text: str) -> int:
    """Leading decimal integer of ``text``, or 0 when there is none."""
    m = _INT_RE.match(text)
    return int(m.group(1)) if m else 0


def _atof(text: str) -> float:
    """Leading decimal number of ``text``, or 0.0 when there is none."""
    m = _FLOAT_RE.match(text)
    return float(m.group(1)) if m else 0.0


def _strtol(text: str) -> int:
    """Leading integer of ``text`` with the base taken from its prefix."""
    for pattern, base in ((_HEX_RE, 16), (_OCT_RE, 8), (_DEC_RE, 10)):
        m = pattern.match(text)
        if m:
            digits = m.group(2) or "0"
            value = int(digits, base)
            return -value if m.group(1) == "-" else value
    return 0


def parse_output(value: str) -> tuple[str, str | None]:
    """Split an output specification into its type and target.

    An unknown prefix means the whole value is a file name.
    """
    pre, sep, sub = value.partition(":")
    target = sub if sep else None

    if pre in ("file", "hackrf"):
        return pre, target
    if pre == "soapysdr":
        raise OptionsError("SoapySDR support is not available in this build.")
    if pre == "fl2k":
        raise OptionsError("FL2K support is not available in this build.")
    return "file", value


def parse_file_type(name: str) -> SampleType:
    """Return the output sample type called ``name``."""
    try:
        return _FILE_TYPES[name]
    except KeyError:
        raise OptionsError("Unrecognised file data type.") from None


def parse_args(argv=None) -> Options:
    """Parse command-line arguments (without the program name).

    An unknown option or a missing option argument yields options with
    ``show_usage`` set and parsing stops there.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    opts = Options()

    try:
        pairs, inputs = getopt.gnu_getopt(args, _SHORT_OPTS, _LONG_OPTS)
    except getopt.GetoptError:
        opts.show_usage = True
        return opts

    for name, value in pairs:
        if name in ("-o", "--output"):
            opts.output_type, opts.output = parse_output(value)
        elif name in ("-m", "--mode"):
            opts.mode = value
        elif name in ("-s", "--samplerate"):
            opts.samplerate = _atoi(value)
        elif name == "--pixelrate":
            opts.pixelrate = _atoi(value)
        elif name in ("-l", "--level"):
            opts.level = _atof(value)
        elif name in ("-D", "--deviation"):
            opts.deviation = _atof(value)
        elif name in ("-G", "--gamma"):
            opts.gamma = _atof(value)
        elif name in ("-i", "--interlace"):
            opts.interlace = True
        elif name in ("-r", "--repeat"):
            opts.repeat = True
        elif name in ("-v", "--verbose"):
            opts.verbose = True
        elif name == "--teletext":
            opts.teletext = value
        elif name == "--wss":
            opts.wss = value
        elif name == "--videocrypt":
            opts.videocrypt = value
        elif name == "--videocrypt2":
            opts.videocrypt2 = value
        elif name == "--videocrypts":
            opts.videocrypts = value
        elif name == "--syster":
            opts.syster = True
        elif name == "--systeraudio":
            opts.systeraudio = True
        elif name == "--acp":
            opts.acp = True
        elif name == "--vits":
            opts.vits = True
        elif name == "--filter":
            opts.filter = True
        elif name in ("--nocolour", "--nocolor"):
            opts.nocolour = True
        elif name == "--noaudio":
            opts.noaudio = True
        elif name == "--nonicam":
            opts.nonicam = True
        elif name == "--a2stereo":
            opts.a2stereo = True
        elif name == "--single-cut":
            opts.scramble_video = 1
        elif name == "--double-cut":
            opts.scramble_video = 2
        elif name == "--eurocrypt":
            opts.eurocrypt = value
        elif name == "--scramble-audio":
            opts.scramble_audio = True
        elif name == "--chid":
            opts.chid = _strtol(value)
        elif name == "--offset":
            opts.offset = int(_atof(value))
        elif name == "--passthru":
            opts.passthru = value
        elif name in ("-f", "--frequency"):
            opts.frequency = int(_atof(value))
        elif name in ("-a", "--amp"):
            opts.amp = True
        elif name in ("-g", "--gain"):
            opts.gain = _atoi(value)
        elif name in ("-A", "--antenna"):
            opts.antenna = value
        elif name in ("-t", "--type"):
            opts.file_type = parse_file_type(value)

    if not inputs:
        raise OptionsError("No input specified.")

    opts.inputs = inputs
    return opts