"""
CHIP-8 VM - Decoder, ALU and Framebuffer Tests
"""

import pytest

from chip8_vm.cpu import alu
from chip8_vm.cpu.decoder import FORMAT_FIELDS, OPCODES, decode
from chip8_vm.errors import UnsupportedInstruction
from chip8_vm.mem.memory import Memory
from chip8_vm.periph.display import Display, WIDTH, HEIGHT


# ─── Decoder ─────────────────────

class TestDecoder:

    def test_table_covers_base_instruction_set(self):
        keys = [entry[2] for entry in OPCODES]
        assert len(keys) == 35
        assert len(set(keys)) == 35

    def test_every_pattern_decodes_to_itself(self):
        for mask, pattern, key, fmt, template in OPCODES:
            assert decode(pattern).key == key, f"{pattern:04X}"

    def test_operand_fields(self):
        ins = decode(0xD12A)
        assert ins.key == 'DRW'
        assert (ins.x, ins.y, ins.n) == (1, 2, 0xA)
        assert decode(0x6A42).kk == 0x42
        assert decode(0x1ABC).nnn == 0xABC

    @pytest.mark.parametrize("word,text", [
        (0x00E0, 'CLS'),
        (0x00EE, 'RET'),
        (0x1234, 'JP 0x234'),
        (0x6A05, 'LD VA, 0x05'),
        (0x8AB6, 'SHR VA, VB'),
        (0xD125, 'DRW V1, V2, 5'),
        (0xE39E, 'SKP V3'),
        (0xF40A, 'LD V4, K'),
        (0xF255, 'LD [I], V2'),
        (0xF265, 'LD V2, [I]'),
    ])
    def test_text(self, word, text):
        assert decode(word).text() == text

    def test_operands_follow_format(self):
        assert decode(0x00E0).operands() == {}
        assert decode(0xA123).operands() == {'nnn': 0x123}
        assert decode(0x7A05).operands() == {'x': 0xA, 'kk': 0x05}
        assert decode(0xD12A).operands() == {'x': 1, 'y': 2, 'n': 0xA}
        assert decode(0xF329).operands() == {'x': 3}

    def test_templates_only_use_their_format_fields(self):
        for mask, pattern, key, fmt, template in OPCODES:
            assert fmt in FORMAT_FIELDS, key
            ins = decode(pattern | (~mask & 0xFFFF))
            assert ins.key == key
            # raises KeyError if the template names a field outside fmt
            ins.text()

    def test_low_nibble_disambiguates_group_8(self):
        assert decode(0x8120).key == 'LD_REG'
        assert decode(0x812E).key == 'SHL'

    def test_sys_recognised(self):
        assert decode(0x0123).key == 'SYS'

    @pytest.mark.parametrize("word", [0x5001, 0x9001, 0x800A, 0xE0A2, 0xF000, 0xF0A1])
    def test_unknown(self, word):
        with pytest.raises(UnsupportedInstruction) as exc:
            decode(word, pc=0x2F0)
        assert exc.value.opcode == word
        assert exc.value.pc == 0x2F0
        assert "2F0" in str(exc.value)


# ─── ALU ─────────────────────

class TestAlu:

    def test_add8(self):
        assert alu.add8(0xFF, 0x01) == (0x00, 1)
        assert alu.add8(0x10, 0x20) == (0x30, 0)

    def test_sub8_borrow_convention(self):
        assert alu.sub8(5, 5) == (0, 1)
        assert alu.sub8(4, 5) == (0xFF, 0)

    def test_shifts(self):
        assert alu.shr8(0x03) == (0x01, 1)
        assert alu.shl8(0x80) == (0x00, 1)
        assert alu.shl8(0x7F) == (0xFE, 0)

    def test_bcd3(self):
        assert alu.bcd3(0) == (0, 0, 0)
        assert alu.bcd3(9) == (0, 0, 9)
        assert alu.bcd3(128) == (1, 2, 8)
        assert alu.bcd3(255) == (2, 5, 5)


# ─── Display ─────────────────────

SPRITE = [0x3C, 0xC3, 0xFF]


class TestDisplay:

    def test_double_draw_restores_state(self):
        d = Display()
        d.draw_sprite(3, 4, [0x81])
        before = list(d.pixels)
        d.draw_sprite(10, 2, SPRITE)
        d.draw_sprite(10, 2, SPRITE)
        assert d.pixels == before

    def test_no_collision_on_empty_screen(self):
        d = Display()
        assert d.draw_sprite(0, 0, SPRITE) is False

    def test_collision_iff_pixel_cleared(self):
        d = Display()
        d.draw_sprite(0, 0, [0x80])
        # overlapping only on unset pixels
        assert d.draw_sprite(1, 0, [0x80]) is False
        # clears (0, 0)
        assert d.draw_sprite(0, 0, [0x80]) is True
        assert not d.get(0, 0)

    def test_zero_bits_never_touch_pixels(self):
        d = Display()
        d.draw_sprite(0, 0, [0xFF])
        assert d.draw_sprite(0, 0, [0x00]) is False
        assert d.lit_count() == 8

    def test_wraparound(self):
        d = Display()
        d.draw_sprite(63, 31, [0xC0, 0xC0])
        assert d.get(63, 31) and d.get(0, 31) and d.get(63, 0) and d.get(0, 0)
        assert d.get(64, 31) == d.get(0, 31)
        assert d.lit_count() == 4

    def test_clear(self):
        d = Display()
        d.draw_sprite(5, 5, SPRITE)
        d.dirty = False
        d.clear()
        assert d.lit_count() == 0
        assert d.dirty

    def test_render_text(self):
        d = Display()
        d.set(1, 0, True)
        lines = d.render_text().splitlines()
        assert len(lines) == HEIGHT
        assert all(len(line) == WIDTH for line in lines)
        assert lines[0].startswith('.#..')


# ─── Memory ─────────────────────

class TestMemory:

    def test_addresses_wrap_at_4k(self):
        mem = Memory()
        mem.write8(0x1005, 0x42)
        assert mem.read8(0x005) == 0x42

    def test_read16_big_endian(self):
        mem = Memory()
        mem.write16(0x300, 0xABCD)
        assert mem.read8(0x300) == 0xAB
        assert mem.read16(0x300) == 0xABCD

    def test_hexdump(self):
        mem = Memory()
        mem.load_binary(b'HI', 0x200)
        line = mem.hexdump(0x200, 16)
        assert line.startswith('200  48 49 00')
        assert line.endswith('HI..............')
