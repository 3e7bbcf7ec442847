"""C3D parameter section constants.

Single source of truth for on-disk codes and record limits.
Keep this file stable. Reader, writer and views must remain synchronized.
"""

# Processor type byte (4th byte of the parameter section header)
PROCESSOR_INTEL = 84  # little-endian IEEE-754
PROCESSOR_DEC = 85    # VAX F-float, little-endian integers
PROCESSOR_MIPS = 86   # big-endian IEEE-754 (SGI/MIPS)

# Section header: [Reserved(1) | Reserved(1) | NumBlocks(1) | Processor(1)]
SECTION_HEADER_LEN = 4
SECTION_KEY = 0x50  # conventional second reserved byte
DEFAULT_FIRST_BLOCK = 2
BLOCK_SIZE = 512

# Parameter data type tags (abs value = bytes per element)
TYPE_CHAR = -1
TYPE_BYTE = 1
TYPE_INTEGER = 2
TYPE_FLOAT = 4

# Record header: [NameLen(i1) | GroupId(i1) | Name(n) | Offset(i2)]
RECORD_PREFIX_LEN = 2
OFFSET_LEN = 2

# Record limits
MAX_NAME_LEN = 127
MAX_DIMENSIONS = 7
MAX_EXTENT = 255
MAX_DESCRIPTION_LEN = 255
MAX_GROUP_ID = 127

# Group names with typed views
GROUP_SEG = "SEG"
GROUP_TRIAL = "TRIAL"
GROUP_MANUFACTURER = "MANUFACTURER"
