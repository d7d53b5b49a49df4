#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ChromWeaver v0.1.0

Tests for sequence and motif utilities.

Author: ChromWeaver Development Team
License: BSD-3-Clause - See LICENSE
"""

import pytest
from chromweaver.utils.sequence_utils import (
    reverse_complement,
    all_kmers,
    is_valid_kmer,
)
from chromweaver.utils.motif import (
    Motif,
    MotifError,
    all_bases,
    matches_any,
    parse_motifs,
)


class TestKmerSpace:

    def test_all_sixmers(self):
        kmers = all_kmers()
        assert len(kmers) == 4096
        assert len(set(kmers)) == 4096
        assert kmers[0] == "AAAAAA"
        assert kmers[-1] == "TTTTTT"

    def test_valid_kmer(self):
        assert is_valid_kmer("GCATGC")
        assert not is_valid_kmer("GCATG")
        assert not is_valid_kmer("GCATGN")
        assert not is_valid_kmer("gcatgc")


class TestReverseComplement:
    """Test reverse complement function."""

    def test_reverse_complement_simple(self):
        assert reverse_complement("ATCG") == "CGAT"

    def test_reverse_complement_palindrome(self):
        """Test palindromic sequence."""
        assert reverse_complement("GAATTC") == "GAATTC"  # EcoRI site

    def test_reverse_complement_preserves_n(self):
        assert reverse_complement("ANGC") == "GCNT"

    def test_double_reverse_complement(self):
        """Test that double reverse complement returns original."""
        sequence = "ATCGATCGTAGC"
        assert reverse_complement(reverse_complement(sequence)) == sequence


class TestMotifParsing:

    def test_parse(self):
        motif = Motif.parse("2:GC")
        assert motif.motif == "GC"
        assert motif.position == 2
        assert motif.position_0b == 1
        assert str(motif) == "2:GC"

    @pytest.mark.parametrize("text", [
        "GC",          # no position
        "1:GC:2",      # extra part
        "x:GC",        # non-numeric position
        "-1:GC",       # negative position
        "0:GC",        # zero-based position
        "3:GC",        # past motif end
        "1:gc",        # lowercase
        "1:GN",        # non-ACGT base
        "1:",          # empty motif
        "TA:1",        # swapped fields
        "1:TA:",       # trailing separator
    ])
    def test_parse_rejects(self, text):
        with pytest.raises(MotifError):
            Motif.parse(text)

    def test_parse_motifs_keeps_order(self):
        motifs = parse_motifs(["1:CG", "2:GC"])
        assert [str(m) for m in motifs] == ["1:CG", "2:GC"]


class TestMotifMatching:

    def test_matches_start_only(self):
        motif = Motif.parse("2:GC")
        assert motif.matches_start("GCATGC")
        assert not motif.matches_start("ATGCAT")
        assert motif.within_kmer("ATGCAT")

    def test_all_bases_match_everything(self):
        motifs = all_bases()
        assert len(motifs) == 4
        assert all(matches_any(kmer, motifs) for kmer in ["AAAAAA", "CGCGCG", "GATTAC", "TTTTTT"])

    def test_matches_any(self):
        motifs = parse_motifs(["1:CG", "2:GC"])
        assert matches_any("CGATAT", motifs)
        assert matches_any("GCATAT", motifs)
        assert not matches_any("ATGCAT", motifs)

    def test_surrounding_idxs(self):
        motif = Motif.parse("2:GC")
        assert list(motif.surrounding_idxs(10)) == [6, 7, 8, 9, 10, 11]
        assert list(motif.surrounding_idxs(1)) == [0, 1, 2]

# ChromWeaver v0.1.0
# Any usage is subject to this software's license.
