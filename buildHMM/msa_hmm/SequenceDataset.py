import logging
from pathlib import Path
from types import TracebackType
from typing import Self

import numpy as np
from Bio import Seq, SeqIO, SeqRecord

from buildHMM.hmm.alphabet import Alphabet

logger = logging.getLogger(__name__)

CUTOFF_TAGS = ("GA", "TC", "NC")


class SequenceDataset:
    """
    Manages a set of biological sequences.
    """

    def __init__(
        self,
        filepath: Path | str | None = None,
        fmt: str = "fasta",
        sequences: list[tuple[str, str]] | None = None,
        alphabet: Alphabet | None = None,
    ) -> None:
        """
        Args:
            filepath (Path): Path to a sequence file in any supported format.
            fmt (str): Format of the file. Can be any format supported by
                Biopython's SeqIO.
            sequences (list): A list of id/sequence pairs as strings. If given,
                filepath and fmt arguments are ignored.
            alphabet (Alphabet): Alphabet used to encode the sequences.
                Defaults to the amino acid alphabet.
        """
        self.alphabet = alphabet or Alphabet.amino()
        if sequences is None:
            # Attempt to parse the file when no sequences are given
            assert filepath is not None, \
                "filepath must be provided when sequences are None"
            if isinstance(filepath, str):
                filepath = Path(filepath)
            self._filepath = filepath
            try:
                with open(filepath, "rt", encoding="utf-8") as handle:
                    self._record_dict = SeqIO.to_dict(
                        SeqIO.parse(handle, fmt)
                    )
                self._parsing_ok = True
            except ValueError as err:
                self._parsing_ok = False
                # hold the error and raise it when calling validate_dataset
                self._err = err
            if not self._parsing_ok:
                return
        else:
            self._parsing_ok = True
            self._filepath = Path()
            self._record_dict = {
                s[0] : SeqRecord.SeqRecord(Seq.Seq(s[1])
                if isinstance(s[1], str) else s[1], id=s[0])
                for s in sequences
            }
        # Since Python 3.7 key order is preserved in dictionaries so this list
        # is correctly ordered
        self._seq_ids = list(self._record_dict)
        self._num_seq = len(self._seq_ids)
        self._seq_lens = np.array([
            sum([1 for x in str(self.get_record(i).seq) if x.isalpha()])
            for i in range(self._num_seq)
        ])

    def __len__(self) -> int:
        return self.num_seq

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None
    ) -> None:
        self.close()

    @property
    def seq_ids(self) -> list[str]:
        """List of sequence IDs."""
        if not hasattr(self, "_seq_ids"):
            return []
        return self._seq_ids

    @property
    def num_seq(self) -> int:
        """Total number of sequences in the dataset."""
        if not hasattr(self, "_num_seq"):
            return 0
        return self._num_seq

    @property
    def seq_lens(self) -> np.ndarray:
        """Lengths of the sequences in the dataset."""
        if not hasattr(self, "_seq_lens"):
            return np.array([])
        return self._seq_lens

    @property
    def parsing_ok(self) -> bool:
        """Whether the dataset was parsed successfully."""
        return self._parsing_ok

    @property
    def record_dict(self) -> dict[str, SeqRecord.SeqRecord]:
        """Dictionary that takes sequence IDs as keys and maps them to
        SeqRecord objects."""
        return self._record_dict

    def close(self) -> None:
        pass

    def get_record(self, i: int) -> SeqRecord.SeqRecord:
        """ Get the SeqRecord object for sequence i. """
        return self.record_dict[self.seq_ids[i]]

    def get_encoded_seq(self, i: int, remove_gaps: bool = True) -> np.ndarray:
        """
        Returns sequence i encoded with the digital codes of the alphabet.

        Args:
            i (int): Index of the sequence to process.
            remove_gaps (bool): If True, all gap characters are removed.

        Raises:
            ValueError: If the sequence contains symbols that are not part
                of the alphabet.
        """
        try:
            seq = self.alphabet.encode(str(self.get_record(i).seq))
        except ValueError as err:
            raise ValueError(f"Sequence {self.seq_ids[i]}: {err}") from err
        if remove_gaps:
            seq = seq[seq != self.alphabet.gap_code]
        return seq

    def validate_dataset(
            self,
            single_seq_ok: bool = False,
            empty_seq_ok: bool = False,
            empty_seq_id_ok: bool = False,
            dublicate_seq_id_ok: bool = False,
    ) -> None:
        """Raise an error if the dataset is not valid for processing.
        """
        if not self.parsing_ok:
            raise self._err

        if len(self.seq_ids) == 1 and not single_seq_ok:
            raise ValueError(
                f"File {self._filepath} contains only a single sequence."
            )

        if len(self.seq_ids) == 0:
            raise ValueError(
                f"Could not parse any sequences from {self._filepath}."
            )

        if not empty_seq_ok and np.amin(self.seq_lens) == 0:
            raise ValueError(f"{self._filepath} contains empty sequences.")

        if not empty_seq_id_ok:
            for sid in self.seq_ids:
                if sid == '':
                    raise ValueError(
                        f"File {self._filepath} contains an empty sequence ID, "\
                        "which is not allowed."
                    )
        if len(self.seq_ids) > len(set(self.seq_ids)) and not dublicate_seq_id_ok:
            raise ValueError(
                f"File {self._filepath} contains duplicated sequence IDs. "
                "buildHMM requires unique sequence IDs."
            )

    def write(self, filepath: Path | str, fmt="fasta") -> None:
        """
        Write the dataset to a file.

        Args:
            filepath (Path): Path to the output file.
            fmt (str): Format of the output file. Can be any format supported
                by Biopython's SeqIO.
        """
        sequences = list(self.record_dict.values())
        for s in sequences:
            s.description = ""
        SeqIO.write(sequences, filepath, fmt)


class AlignedDataset(SequenceDataset):
    """
    Manages a multiple sequence alignment together with the Stockholm
    markup relevant for model construction: name, accession, description,
    reference annotation, score cutoffs and sequence weights.
    """
    def __init__(
            self,
            filepath: Path | str | None = None,
            fmt: str = "stockholm",
            aligned_sequences: list[tuple[str, str]] | None = None,
            alphabet: Alphabet | None = None,
            single_seq_ok: bool = True,
            name: str | None = None,
            accession: str | None = None,
            description: str | None = None,
            reference_annotation: str | None = None,
            cutoffs: dict[str, tuple[float, ...]] | None = None,
            weights: np.ndarray | None = None,
    ) -> None:
        """
        Args:
            filepath (Path): Path to an alignment file.
            fmt (str): Format of the file. Stockholm markup (``#=GF ID``,
                ``AC``, ``DE``, ``GA``, ``TC``, ``NC``, ``#=GC RF`` and
                ``#=GS <seq> WT``) is only read from Stockholm files.
            aligned_sequences (list): A list of id/sequence pairs as strings.
                If given, filepath and fmt arguments are ignored.
            alphabet (Alphabet): Alphabet used to encode the alignment.
            single_seq_ok (bool): If True, allow datasets with a single
                sequence.
            name, accession, description, reference_annotation, cutoffs,
            weights: Override the values read from the file.
        """
        super().__init__(filepath, fmt, aligned_sequences, alphabet)
        self._single_seq_ok = single_seq_ok
        self.validate_dataset()

        markup = _StockholmMarkup()
        if aligned_sequences is None and fmt == "stockholm":
            markup = _StockholmMarkup.read(self._filepath)
        self.name = name if name is not None else markup.name
        if self.name is None and aligned_sequences is None:
            self.name = self._filepath.stem
        self.accession = accession if accession is not None \
            else markup.accession
        self.description = description if description is not None \
            else markup.description
        self.reference_annotation = reference_annotation \
            if reference_annotation is not None else markup.rf
        self.cutoffs = dict(cutoffs) if cutoffs is not None \
            else markup.cutoffs

        # Create MSA matrix
        self._msa_matrix = np.stack([
            self.get_encoded_seq(i, remove_gaps=False)
            for i in range(self.num_seq)
        ])
        self._alignment_len = self._msa_matrix.shape[1]

        if self.reference_annotation is not None \
                and len(self.reference_annotation) != self._alignment_len:
            raise ValueError(
                f"Reference annotation of {self.name} has length "
                f"{len(self.reference_annotation)}, but the alignment has "
                f"{self._alignment_len} columns."
            )

        if weights is not None:
            self.weights = weights
            self.has_weights = True
        elif markup.weights:
            self.weights = np.array([
                markup.weights.get(sid, 1.) for sid in self.seq_ids
            ])
            self.has_weights = True
        else:
            self.weights = np.ones(self.num_seq)
            self.has_weights = False

    def validate_dataset(self) -> None:
        """Raise an error if the MSA is not valid for processing.
        """
        super().validate_dataset(
            single_seq_ok=self._single_seq_ok,
            empty_seq_ok=True,
            empty_seq_id_ok=False,
            dublicate_seq_id_ok=False
        )
        record_lens = np.array([
            len(self.get_record(i)) for i in range(self.num_seq)
        ])
        if np.any(record_lens != record_lens[0]):
            raise ValueError(
                f"File {self._filepath} contains sequences of different "\
                "lengths."
            )

    @property
    def msa_matrix(self) -> np.ndarray:
        """MSA matrix as a 2D numpy array of shape (num_seq, alignment_len)."""
        return self._msa_matrix

    @property
    def alignment_len(self) -> int:
        """Length of the alignment (number of columns)."""
        return self._alignment_len

    @property
    def weights(self) -> np.ndarray:
        """Relative sequence weights."""
        return self._weights

    @weights.setter
    def weights(self, value: np.ndarray) -> None:
        value = np.asarray(value, dtype=np.float64)
        if value.shape != (self.num_seq,):
            raise ValueError(
                f"Expected {self.num_seq} weights, got shape {value.shape}."
            )
        self._weights = value

    def checksum(self) -> int:
        """Jenkins one-at-a-time hash of the aligned sequences."""
        h = 0
        mask = 0xffffffff
        for i in range(self.num_seq):
            for c in str(self.get_record(i).seq).encode("ascii"):
                h = (h + c) & mask
                h = (h + (h << 10)) & mask
                h ^= h >> 6
        h = (h + (h << 3)) & mask
        h ^= h >> 11
        h = (h + (h << 15)) & mask
        return h

    def write(self, filepath: Path | str, fmt="stockholm") -> None:
        """
        Write the alignment to a file. Stockholm output includes the
        name, accession, description, cutoffs, weights and the reference
        annotation.

        Args:
            filepath (Path): Path to the output file.
            fmt (str): ``stockholm`` or any format supported by Biopython's
                SeqIO.
        """
        if fmt != "stockholm":
            super().write(filepath, fmt)
            return
        width = max(len(sid) for sid in self.seq_ids)
        width = max(width, len("#=GC RF"))
        lines = ["# STOCKHOLM 1.0", ""]
        if self.name:
            lines.append(f"#=GF ID {self.name}")
        if self.accession:
            lines.append(f"#=GF AC {self.accession}")
        if self.description:
            lines.append(f"#=GF DE {self.description}")
        for tag in CUTOFF_TAGS:
            if tag in self.cutoffs:
                values = " ".join(f"{c:.2f}" for c in self.cutoffs[tag])
                lines.append(f"#=GF {tag} {values}")
        if self.has_weights:
            lines.append("")
            for sid, w in zip(self.seq_ids, self.weights):
                lines.append(f"#=GS {sid.ljust(width)} WT {w:.2f}")
        lines.append("")
        for i, sid in enumerate(self.seq_ids):
            lines.append(f"{sid.ljust(width)} {self.get_record(i).seq}")
        if self.reference_annotation is not None:
            lines.append(f"{'#=GC RF'.ljust(width)} {self.reference_annotation}")
        lines.append("//")
        with open(filepath, "wt", encoding="utf-8") as handle:
            handle.write("\n".join(lines) + "\n")


class _StockholmMarkup:
    """Per-file and per-column markup of a Stockholm alignment."""

    def __init__(self) -> None:
        self.name: str | None = None
        self.accession: str | None = None
        self.description: str | None = None
        self.rf: str | None = None
        self.cutoffs: dict[str, tuple[float, ...]] = {}
        self.weights: dict[str, float] = {}

    @classmethod
    def read(cls, filepath: Path) -> "_StockholmMarkup":
        markup = cls()
        rf_blocks = []
        with open(filepath, "rt", encoding="utf-8") as handle:
            for line in handle:
                fields = line.split(maxsplit=3)
                if len(fields) < 3:
                    continue
                if fields[0] == "#=GF":
                    tag = fields[1]
                    value = line.split(maxsplit=2)[2].strip()
                    if tag == "ID":
                        markup.name = value
                    elif tag == "AC":
                        markup.accession = value
                    elif tag == "DE":
                        markup.description = value
                    elif tag in CUTOFF_TAGS:
                        markup.cutoffs[tag] = _parse_cutoff(tag, value)
                elif fields[0] == "#=GC" and fields[1] == "RF":
                    rf_blocks.append(fields[2].strip())
                elif fields[0] == "#=GS" and len(fields) == 4 \
                        and fields[2] == "WT":
                    try:
                        markup.weights[fields[1]] = float(fields[3])
                    except ValueError as err:
                        raise ValueError(
                            f"Invalid weight for sequence {fields[1]} "
                            f"in {filepath}."
                        ) from err
        if rf_blocks:
            markup.rf = "".join(rf_blocks)
        return markup


def _parse_cutoff(tag: str, value: str) -> tuple[float, ...]:
    # a single value is kept as is, the pair is incomplete
    parts = value.rstrip(";").replace(";", " ").split()
    if not 1 <= len(parts) <= 2:
        raise ValueError(f"Invalid {tag} cutoff line: {value}")
    try:
        return tuple(float(p) for p in parts)
    except ValueError as err:
        raise ValueError(f"Invalid {tag} cutoff line: {value}") from err
