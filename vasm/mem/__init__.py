# vasm memory bank (memory.py).
