#!/usr/bin/python
import os
import pickle
import numpy as np

import objects
from objects import *


### the host dumps one list of event dictionaries per pickle file:
# {"digis"   : [ {"element":{"rawid":..,"layer":..,"ring":..,"nrows":..,"ncolumns":..,"center":(x,y,z)},
#                 "hits":[(row,column,charge,overthreshold[,(x,y,z)]),...]}, ... ],
#  "trigger" : {"accepted":..,"index":..,"wasrun":..,
#               "jets":{level_name:[(et,eta,phi),...]}, "partons":[(et,eta,phi,flavour)],
#               "tags":[(et,eta,phi,discriminator)], "vertex":(x,y,z)},
#  "csc"     : {"simtracks":[(pdgid,pt,eta)], "simhits":[{...}], "rechits":[{...}], "segments":[{...}],
#               "chambers":{(endcap,station,ring,chamber):{"typename":..,"first_layer":..,"last_layer":..}}}}

def load_events(fname):
    if(not os.path.isfile(fname)):
        print(f"Input file {fname} does not exist. Quitting.")
        quit()
    with open(fname,'rb') as handle:
        events = pickle.load(handle)
    return events


def get_digi_hit(h):
    if(isinstance(h,DigitHit)): return h
    row,column = int(h[0]),int(h[1])
    charge = int(h[2]) if(len(h)>2) else 0
    ot     = bool(h[3]) if(len(h)>3) else False
    pos    = tuple(h[4]) if(len(h)>4 and h[4] is not None) else None
    return DigitHit(row,column,charge,ot,pos)


def get_det_element(e):
    center = tuple(e["center"]) if(e.get("center") is not None) else None
    return DetElement(e["rawid"],e["layer"],e["nrows"],e["ncolumns"],e.get("ring",0),center)


def get_all_digis(evt):
    ### list of (element, digis) in the order the host delivered them
    digis = []
    for det in evt.get("digis",[]):
        element = get_det_element(det["element"])
        hits = [get_digi_hit(h) for h in det["hits"]]
        digis.append( (element,hits) )
    return digis


def get_jet(j):
    return Jet(float(j[0]),float(j[1]),float(j[2]))


def get_trigger_result(evt):
    trg = evt.get("trigger")
    if(trg is None): return None
    jets = {}
    for level,levjets in trg.get("jets",{}).items():
        jets.update( {level:[get_jet(j) for j in levjets]} )
    partons = [(get_jet(p),int(p[3])) for p in trg.get("partons",[])]
    tags    = [(get_jet(t),float(t[3])) for t in trg.get("tags",[])]
    vertex  = Vertex(*trg["vertex"]) if(trg.get("vertex") is not None) else None
    return TriggerResult(bool(trg["accepted"]),int(trg["index"]),bool(trg.get("wasrun",True)),jets,partons,tags,vertex)


def get_csc_records(evt):
    csc = evt.get("csc")
    if(csc is None): return None
    chambers  = {}
    for cid,ch in csc.get("chambers",{}).items():
        chambers.update( {tuple(cid):Chamber(ch["typename"],ch.get("first_layer",1),ch.get("last_layer",6))} )
    simtracks = [SimTrack(*t) for t in csc.get("simtracks",[])]
    simhits   = [SimHit(tuple(s["chamber"]),s["layer"],s.get("trackid",0),s.get("x",0.),s.get("y",0.),s.get("theta",0.),s.get("phi",0.)) for s in csc.get("simhits",[])]
    rechits   = [RecHit(tuple(r["chamber"]),r["layer"]) for r in csc.get("rechits",[])]
    segs      = [Segment(tuple(s["chamber"]),s["nrechits"],s["chi2"],s.get("x",0.),s.get("y",0.),s.get("theta",0.),s.get("phi",0.)) for s in csc.get("segments",[])]
    return simtracks,simhits,rechits,segs,chambers
