#!/usr/bin/python
import os
import math
import numpy as np
from collections import defaultdict

import objects
from objects import *
import counters
from counters import ratio


RESOLUTION_CATEGORIES = {"ME1/b":0, "ME1/2":1, "ME1/3":1, "ME2/1":2, "ME3/1":2, "ME4/1":2}

def resolution_category(typename):
    return RESOLUTION_CATEGORIES.get(typename,3)


def count_layers(layers):
    ### counts layer changes along the hit sequence, as hits arrive grouped by layer
    nlayers = 0
    ith_layer = 0
    for layer in layers:
        if(layer!=ith_layer):
            nlayers += 1
            ith_layer = layer
    return nlayers


def same_chamber(a,b):
    return (a.chamber==b.chamber)


class SegmentReader:
    """
    Segment reconstruction quality per chamber type.

    Chambers are counted when their simulated muon crosses enough layers
    ("sim" denominator) and, in addition, when enough layers carry rechits
    ("rechits" denominator). A chamber is "found" when any segment was built
    in it, and "good" when a segment has at least minRechitPerSegment rechits.
    """
    def __init__(self,minLayerWithRechitPerChamber=6,minLayerWithSimhitPerChamber=6,minRechitPerSegment=6,histos=None,maxPhiSeparation=1.,maxThetaSeparation=1.):
        self.minLayerWithRechitPerChamber = minLayerWithRechitPerChamber
        self.minLayerWithSimhitPerChamber = minLayerWithSimhitPerChamber
        self.minRechitPerSegment          = minRechitPerSegment
        self.maxPhiSeparation             = maxPhiSeparation
        self.maxThetaSeparation           = maxThetaSeparation
        self.histos = histos if(histos is not None) else {}
        self.chaMap1 = defaultdict(int) ### chambers with enough simhit layers
        self.chaMap2 = defaultdict(int) ### ... and enough rechit layers
        self.segMap1 = defaultdict(int) ### segment found
        self.segMap2 = defaultdict(int) ### segment found, enough rechit layers
        self.segMap3 = defaultdict(int) ### good segment, enough rechit layers

    @classmethod
    def from_config(cls,cfg,histos=None):
        return cls(cfg["minLayerWithRechitPerChamber"],cfg["minLayerWithSimhitPerChamber"],cfg["minRechitPerSegment"],histos,
                   cfg["maxPhiSeparation"],cfg["maxThetaSeparation"])

    def fill(self,name,*args):
        h = self.histos.get(name)
        if(h is not None): h.Fill(*args)

    def sim_layers_in_chamber(self,simhit,simhits):
        return count_layers([s.layer for s in simhits if(same_chamber(s,simhit))])

    def analyze(self,simtracks,simhits,rechits,segments,chambers):
        self.sim_info(simtracks)
        self.resolution(simhits,segments,chambers)
        self.rec_info(simhits,rechits,segments,chambers)

    def sim_info(self,simtracks):
        for trk in simtracks:
            if(abs(trk.pdgid)==13):
                self.fill("h_pt",trk.pt)
                self.fill("h_eta",trk.eta)

    def rec_info(self,simhits,rechits,segments,chambers):
        self.fill("h_segments",len(segments))
        for simhit in simhits:
            chamber = chambers[simhit.chamber]
            if(simhit.layer!=chamber.first_layer): continue
            if(self.sim_layers_in_chamber(simhit,simhits)<self.minLayerWithSimhitPerChamber): continue
            typename = chamber.typename
            self.chaMap1[typename] += 1

            rechits_ok = False
            nrechitlayers = count_layers([r.layer for r in rechits if(same_chamber(r,simhit))])
            if(nrechitlayers>=self.minLayerWithRechitPerChamber):
                self.chaMap2[typename] += 1
                rechits_ok = True

            found = False
            good  = False
            for seg in segments:
                if(not same_chamber(seg,simhit)): continue
                found = True
                self.fill("h_rechits",seg.nrechits)
                if(seg.nrechits>=self.minRechitPerSegment):
                    self.fill("h_chi2",seg.chi2ndof)
                    good = True
                    break
            if(found):                self.segMap1[typename] += 1
            if(found and rechits_ok): self.segMap2[typename] += 1
            if(good and rechits_ok):  self.segMap3[typename] += 1

    def resolution(self,simhits,segments,chambers):
        for seg in segments:
            chamber = chambers[seg.chamber]
            minPhi   = self.maxPhiSeparation
            minTheta = self.maxThetaSeparation
            best = None
            for simhit in simhits:
                if(simhit.layer!=chamber.first_layer): continue
                if(self.sim_layers_in_chamber(simhit,simhits)<self.minLayerWithSimhitPerChamber): continue
                if(not same_chamber(simhit,seg)): continue
                deltaTheta = abs(seg.theta-simhit.theta)
                deltaPhi   = abs(seg.phi-simhit.phi)
                if(deltaPhi<minPhi and deltaTheta<minTheta):
                    minPhi   = deltaPhi
                    minTheta = deltaTheta
                    best     = simhit
            if(best is None): continue

            resoPhi   = seg.phi-best.phi
            resoTheta = seg.theta-best.theta
            typename  = chamber.typename
            if(typename!="ME1/a"):
                icat = resolution_category(typename)
                self.fill(f"h_reso_phi_{icat}",resoPhi)
                self.fill(f"h_reso_theta_{icat}",resoTheta)
                continue
            ### ME1/a: compare to the middle of the simulated track inside the chamber
            last = None
            for simhit in simhits:
                if(simhit.chamber==seg.chamber and simhit.layer==chamber.last_layer and simhit.trackid==best.trackid): last = simhit
            if(last is not None):
                self.fill("h_dx",seg.x-(best.x+last.x)/2.)
                self.fill("h_dy",seg.y-(best.y+last.y)/2.)

    def chamber_types(self):
        return sorted(self.chaMap1.keys())

    def efficiencies(self):
        effs = {}
        for typename in self.chamber_types():
            effs.update( {typename:{
                "found"         : ratio(self.segMap1[typename],self.chaMap1[typename]),
                "found_rechits" : ratio(self.segMap2[typename],self.chaMap2[typename]),
                "good"          : ratio(self.segMap3[typename],self.chaMap1[typename]),
                "good_rechits"  : ratio(self.segMap3[typename],self.chaMap2[typename]),
            }} )
        return effs

    def format_report(self):
        titles = {"found"         : "Raw reco efficiency for 6-hit simulated segment",
                  "found_rechits" : "Raw reco efficiency for chamber with 6 layers with rechits",
                  "good"          : "Reco efficiency for building 6-hit segment for 6-hit simulated segment",
                  "good_rechits"  : "Reco efficiency for chamber with 6 layers with rechits"}
        nums = {"found":self.segMap1, "found_rechits":self.segMap2, "good":self.segMap3, "good_rechits":self.segMap3}
        dens = {"found":self.chaMap1, "found_rechits":self.chaMap2, "good":self.chaMap1, "good_rechits":self.chaMap2}
        effs = self.efficiencies()
        lines = []
        for kind,title in titles.items():
            lines.append(title)
            for typename in self.chamber_types():
                lines.append(f"{typename}: {nums[kind][typename]} {dens[kind][typename]}  {effs[typename][kind]}")
        return lines

    def print_report(self):
        for line in self.format_report(): print(line)
