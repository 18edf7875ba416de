# vasm CPU core: register file (regs.py) and value ALU (alu.py).
