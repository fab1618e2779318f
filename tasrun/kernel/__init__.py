"""Kernel — the instruction stream, its evaluator and the per-tick sequencer.

- Program / Step: the mutable instruction arena and its file-cell parser
- Evaluator: turns one Instruction into a Verdict against live state
- Sequencer: the fetch-execute loop that commits one input per tick
- InputOverride / ScriptedOverride: inputs that bypass the program
"""
