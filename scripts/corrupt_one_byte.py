import sys
from pathlib import Path

def main():
    if len(sys.argv) != 2:
        print("Usage: corrupt_one_byte.py <section_file>")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    b = bytearray(p.read_bytes())
    if len(b) < 8:
        print("File too small to corrupt safely.")
        raise SystemExit(2)

    # Section header is 4 bytes. First record: NameLen(1) | Id(1) | Name | Offset(2).
    # Raise the high byte of its little-endian next-record offset so the
    # chain points past the end of the section.
    name_len = abs(b[4] - 256 if b[4] > 127 else b[4])
    idx = 4 + 2 + name_len + 1
    b[idx] = 0x7F
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} in {p}")

if __name__ == "__main__":
    main()
